from .__version__ import __version__
from .core.entry import Entry
from .core.errors import CapGlobError, GlobError, PatternError, SubstitutionError
from .core.filesystem import FileSystem, OsFileSystem
from .core.glob import Entries, GlobResult, glob, glob_with
from .core.options import MatchOptions
from .core.pattern import Pattern

__all__ = [
    "CapGlobError",
    "Entries",
    "Entry",
    "FileSystem",
    "GlobError",
    "GlobResult",
    "MatchOptions",
    "OsFileSystem",
    "Pattern",
    "PatternError",
    "SubstitutionError",
    "__version__",
    "glob",
    "glob_with",
]
