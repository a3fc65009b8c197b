"""
Army naming.

Maps theme keys to display names, adding alliterative suffixes where the
tables ask for them.
"""

from .base import NameService
from .mapper import ThemeNameEntry, ThemeNameMapper, add_alliterative_suffix, load_name_table
from .pools import ALLITERATIVE_SUFFIXES

__all__ = [
    "NameService",
    "ThemeNameMapper",
    "ThemeNameEntry",
    "add_alliterative_suffix",
    "load_name_table",
    "ALLITERATIVE_SUFFIXES",
]
