from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from engine.error_handler import get_logger

log = get_logger(__name__)


def _now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%S", time.localtime())


def _jsonable(value: Any) -> Any:
    # Enums and paths show up in event fields; store their plain form
    if hasattr(value, "value") and not isinstance(value, (int, float, str, bool)):
        return value.value
    if isinstance(value, Path):
        return str(value)
    return value


@dataclass
class TelemetryLogger:
    """Append-only JSONL event log. Disabled until ``init`` is called."""
    path: Optional[Path] = None
    enabled: bool = True
    flush_each_write: bool = False
    events_written: int = 0
    _started_at: float = field(default_factory=time.time)

    def init(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Touch file (don't overwrite)
        self.path.touch(exist_ok=True)
        self.log("telemetry_init", file=str(self.path))

    def close(self) -> None:
        self.path = None

    @property
    def active(self) -> bool:
        return self.enabled and self.path is not None

    def log(self, event: str, **fields: Any) -> None:
        if not self.active:
            return

        row: Dict[str, Any] = {
            "t": time.time(),
            "ts": _now_iso(),
            "uptime": round(time.time() - self._started_at, 3),
            "event": event,
        }
        row.update({k: _jsonable(v) for k, v in fields.items()})

        try:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(row, ensure_ascii=False, default=str) + "\n")
                if self.flush_each_write:
                    f.flush()
            self.events_written += 1
        except OSError as e:
            # A broken telemetry sink must never stop a setup from being generated
            log.debug(f"Telemetry write failed for {event}: {e}")


# global singleton (easy import everywhere)
telemetry = TelemetryLogger()
