"""
Unit tests for army naming.
"""

import random

from roster.naming import ALLITERATIVE_SUFFIXES, ThemeNameMapper, add_alliterative_suffix, load_name_table
from settings import DATA_DIR


class TestAlliterativeSuffix:
    """Tests for add_alliterative_suffix."""

    def test_suffix_shares_first_letter(self):
        """Test that the suffix comes from the name's letter pool."""
        rng = random.Random(2)
        for _ in range(10):
            name = add_alliterative_suffix("Lance", rng)
            suffix = name[len("Lance "):]
            assert name.startswith("Lance ")
            assert suffix in ALLITERATIVE_SUFFIXES["L"]

    def test_single_choice_pool(self):
        """Test a letter with only one suffix."""
        assert add_alliterative_suffix("knights", random.Random(1)) == "knights Kombat"

    def test_no_pool_uses_fallback(self):
        """Test that names without a letter pool get the fallback suffix."""
        assert add_alliterative_suffix("9th", random.Random(1)) == "9th Battle"

    def test_empty_name(self):
        """Test that an empty name stays empty."""
        assert add_alliterative_suffix("", random.Random(1)) == ""


class TestThemeNameMapper:
    """Tests for ThemeNameMapper."""

    def test_mapped_name_without_suffix(self, naming, rng):
        """Test that a mapped entry is returned as is, matched case-insensitively."""
        assert naming.theme_name("ROYAL", rng) == "Royal Guard"

    def test_mapped_name_with_suffix(self, naming, rng):
        """Test that an entry flagged for a suffix gets one."""
        assert naming.theme_name("Knight", rng) == "Knights Kombat"

    def test_unmapped_name_gets_suffix(self, naming, rng):
        """Test that unmapped keys are always suffixed."""
        assert naming.theme_name("Pegasus", rng) == "Pegasus Pursuit"

    def test_enemy_names(self, naming):
        """Test enemy lookups; unknown keys give an empty string."""
        assert naming.enemy_theme_name("Villain") == "The Black Hand"
        assert naming.enemy_theme_name("Lance") == ""

    def test_empty_mapper(self, rng):
        """Test that a mapper without tables still names armies."""
        mapper = ThemeNameMapper()
        assert mapper.theme_name("Hunter", rng) == "Hunter Hunt"
        assert mapper.enemy_theme_name("villain") == ""

    def test_shipped_tables(self, rng):
        """Test that the bundled CSV tables load."""
        mapper = ThemeNameMapper.from_files(DATA_DIR / "theme_names.csv", DATA_DIR / "enemy_theme_names.csv")
        assert mapper.theme_name("royal", rng) == "Royal Guard"
        assert mapper.enemy_theme_name("villain") == "The Black Hand"


class TestLoadNameTable:
    """Tests for load_name_table."""

    def test_reads_rows_after_header(self, tmp_path):
        """Test that the header is skipped and the suffix flag is parsed."""
        path = tmp_path / "names.csv"
        path.write_text(
            "RawName,ThemeName,AddSuffix\n"
            "Lance,Lancers,TRUE\n"
            "Bow,Archers of the Vale,false\n"
            ",Nameless,TRUE\n"
            "short,row\n",
            encoding="utf-8",
        )
        table = load_name_table(path)

        assert set(table) == {"lance", "bow"}
        assert table["lance"].theme_name == "Lancers"
        assert table["lance"].add_suffix is True
        assert table["bow"].add_suffix is False

    def test_missing_file_gives_empty_table(self, tmp_path):
        """Test that a missing CSV is not an error."""
        assert load_name_table(tmp_path / "absent.csv") == {}
        assert load_name_table(None) == {}
