from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple, Union

from .entry import Entry
from .errors import GlobError
from .filesystem import FileSystem, OsFileSystem
from .options import DEFAULT_MATCH_OPTIONS, MatchOptions
from .pattern import Captures, Pattern, Segment, anchor_length, is_separator, match_segment
from .utils.logging import LoggingDescriptor

__all__ = ["Entries", "GlobResult", "glob", "glob_with"]

GlobResult = Union[Entry, GlobError]

_NOT_FOUND_ERRORS = (FileNotFoundError, NotADirectoryError)

# never listed by a directory read
_SPECIAL_DIRS = (os.curdir, os.pardir)


def _join(path: str, name: str) -> str:
    if not path:
        return name
    if is_separator(path[-1]):
        return path + name
    return path + os.sep + name


def _root_path(anchor: str) -> str:
    drive, rest = os.path.splitdrive(anchor)
    return drive + (os.sep if rest else "")


class _Frame(NamedTuple):
    path: str
    index: int
    captures: Captures
    listing: Optional[List[Tuple[str, bool]]] = None
    is_dir: Optional[bool] = None


class Entries(Iterator[GlobResult]):
    """Lazily walks the filesystem and yields everything matching a pattern.

    Items are `Entry` objects for matches and `GlobError` objects for
    directories that could not be read. Matches come depth first, with the
    entries of every directory sorted by name.
    """

    _logger = LoggingDescriptor()

    def __init__(
        self,
        pattern: Pattern,
        segments: Sequence[Segment],
        options: MatchOptions,
        require_dir: bool = False,
        root_dir: Optional[str] = None,
        fs: Optional[FileSystem] = None,
    ) -> None:
        self.pattern = pattern
        self.options = options
        self.require_dir = require_dir
        self.root_dir = root_dir
        self._segments = tuple(segments)
        self._fs: FileSystem = fs if fs is not None else OsFileSystem()
        self._todo: List[_Frame] = []
        self._started = False

    def __iter__(self) -> Entries:
        return self

    def __next__(self) -> GlobResult:
        if not self._started:
            self._started = True
            self._start()

        while self._todo:
            result = self._visit(self._todo.pop())
            if result is not None:
                return result

        raise StopIteration

    def paths(self) -> Iterator[Path]:
        """Yield the paths of all matches, errors are logged and skipped."""
        for result in self:
            if isinstance(result, GlobError):
                self._logger.warning(lambda: str(result))
                continue
            yield result.path

    def _start(self) -> None:
        captures: Captures = ((0, 0),) * self.pattern.group_count

        if self.pattern.is_absolute:
            root = _root_path(self.pattern.anchor)
            if not self._segments:
                if self._fs.exists(root):
                    self._todo.append(_Frame(root, 0, captures))
                return
        else:
            if not self._segments:
                return
            root = ""

        self._todo.append(_Frame(root, 0, captures))

    def _fs_path(self, path: str) -> str:
        if self.root_dir is not None and not self.pattern.is_absolute:
            return os.path.join(self.root_dir, path) if path else self.root_dir
        return path

    def _is_dir(self, frame: _Frame) -> bool:
        if frame.is_dir is not None:
            return frame.is_dir
        return self._fs.is_dir(self._fs_path(frame.path))

    def _is_hidden(self, name: str) -> bool:
        return self.options.require_literal_leading_dot and name.startswith(".")

    def _read_dir(self, frame: _Frame) -> Union[List[Tuple[str, bool]], GlobError]:
        if frame.listing is not None:
            return frame.listing

        fs_path = self._fs_path(frame.path)
        self._logger.trace(lambda: f"read directory {fs_path or os.curdir!r}")
        try:
            return sorted(self._fs.read_dir(fs_path))
        except _NOT_FOUND_ERRORS:
            return []
        except OSError as e:
            self._logger.debug(lambda: f"can't read directory {fs_path or os.curdir!r}: {e}")
            return GlobError(fs_path or os.curdir, e)

    def _literal_run(self, index: int) -> Optional[Tuple[str, int]]:
        parts = []
        while index < len(self._segments):
            literal = self._segments[index].literal
            if literal is None or not (self.options.case_sensitive or literal in _SPECIAL_DIRS):
                break
            parts.append(literal)
            index += 1

        if not parts:
            return None

        return os.sep.join(parts), index

    def _visit(self, frame: _Frame) -> Optional[GlobResult]:
        if frame.index == len(self._segments):
            if not frame.path:
                return None
            if self.require_dir and not self._is_dir(frame):
                return None
            return Entry(frame.path, frame.captures)

        segment = self._segments[frame.index]

        if segment.is_recursive:
            if not self._is_dir(frame):
                return None

            listing = self._read_dir(frame)
            if isinstance(listing, GlobError):
                return listing

            self._todo.extend(
                _Frame(_join(frame.path, name), frame.index, frame.captures, None, True)
                for name, is_dir in reversed(listing)
                if is_dir and not self._is_hidden(name)
            )
            self._todo.append(_Frame(frame.path, frame.index + 1, frame.captures, listing, True))
            return None

        literal = self._literal_run(frame.index)
        if literal is not None:
            text, next_index = literal
            child = _join(frame.path, text)
            if self._fs.exists(self._fs_path(child)):
                self._todo.append(_Frame(child, next_index, frame.captures))
            return None

        listing = self._read_dir(frame)
        if isinstance(listing, GlobError):
            return listing

        is_last = frame.index == len(self._segments) - 1

        for name, is_dir in reversed(listing):
            if not is_last and not is_dir:
                continue

            child = _join(frame.path, name)
            captures = match_segment(segment, child, len(child) - len(name), frame.captures, self.options)
            if captures is not None:
                self._todo.append(_Frame(child, frame.index + 1, captures, None, is_dir))

        return None

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}(pattern={self.pattern.pattern!r}, options={self.options!r})"


def _strip_trailing_separators(pattern: str) -> Tuple[str, bool]:
    end = len(pattern)
    while end > 0 and is_separator(pattern[end - 1]):
        end -= 1

    if end == len(pattern) or end <= anchor_length(pattern):
        return pattern, False

    return pattern[:end], True


def glob_with(
    pattern: Union[str, Pattern],
    options: Optional[MatchOptions] = None,
    *,
    root_dir: Union[str, "os.PathLike[str]", None] = None,
    fs: Optional[FileSystem] = None,
) -> Entries:
    """Return an iterator over all paths matching `pattern` and their capture groups.

    Absolute patterns are matched from their root, relative ones from
    `root_dir` (or the current directory), and the yielded paths are then
    relative to it as well. A pattern ending in a separator only matches
    directories.

    A `PatternError` is raised right away if the pattern is invalid. Nothing
    is read from the filesystem before the first item is requested.

    Each item is either an `Entry` or a `GlobError` for a directory that
    could not be read.
    """
    text = pattern.pattern if isinstance(pattern, Pattern) else pattern
    stripped, require_dir = _strip_trailing_separators(text)

    compiled = pattern if isinstance(pattern, Pattern) and not require_dir else Pattern(stripped)

    segments = [s for s in compiled.segments if s.literal != "."]
    if not segments and compiled.segments and not compiled.is_absolute:
        segments = [compiled.segments[0]]

    return Entries(
        compiled,
        segments,
        options or DEFAULT_MATCH_OPTIONS,
        require_dir=require_dir,
        root_dir=os.fspath(root_dir) if root_dir is not None else None,
        fs=fs,
    )


def glob(
    pattern: Union[str, Pattern],
    *,
    root_dir: Union[str, "os.PathLike[str]", None] = None,
    fs: Optional[FileSystem] = None,
) -> Entries:
    """Like `glob_with` with the default `MatchOptions`.

    ```python
    for entry in glob("/media/pictures/(*).jpg"):
        if isinstance(entry, GlobError):
            print(entry)
        else:
            print(entry.path, entry.group(1))
    ```
    """
    return glob_with(pattern, root_dir=root_dir, fs=fs)
