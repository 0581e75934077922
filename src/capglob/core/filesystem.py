import os
from typing import List, Protocol, Tuple

__all__ = ["FileSystem", "OsFileSystem"]


class FileSystem(Protocol):
    def read_dir(self, path: str) -> List[Tuple[str, bool]]:
        """Return the `(name, is_dir)` pairs of a directory, in any order.

        Raises `OSError` if the directory cannot be read.
        """
        ...

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...


def _entry_is_dir(entry: "os.DirEntry[str]") -> bool:
    try:
        return entry.is_dir()
    except OSError:
        return False


class OsFileSystem:
    """The local filesystem, symlinks are followed."""

    def read_dir(self, path: str) -> List[Tuple[str, bool]]:
        with os.scandir(path or os.curdir) as it:
            return [(e.name, _entry_is_dir(e)) for e in it]

    def exists(self, path: str) -> bool:
        return os.path.exists(path or os.curdir)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path or os.curdir)

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}()"
