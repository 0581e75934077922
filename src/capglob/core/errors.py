from pathlib import Path
from typing import Optional

__all__ = [
    "CapGlobError",
    "GlobError",
    "PatternError",
    "SubstitutionError",
]


class CapGlobError(Exception):
    """Base class of all errors raised or reported by capglob."""


class PatternError(CapGlobError, ValueError):
    """A glob pattern could not be compiled."""

    def __init__(self, pattern: str, pos: int, msg: str) -> None:
        super().__init__(f"Pattern syntax error near position {pos}: {msg}")
        self.pattern = pattern
        self.pos = pos
        self.msg = msg

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}(pattern={self.pattern!r}, pos={self.pos!r}, msg={self.msg!r})"


class GlobError(CapGlobError):
    """A directory could not be read while walking the tree.

    Instances are not raised by the traversal, they are yielded in place of a
    match so iteration can go on with the remaining directories.
    """

    def __init__(self, path: str, error: OSError) -> None:
        super().__init__(path, error)
        self._path = path
        self.error = error

    @property
    def path(self) -> Path:
        return Path(self._path)

    def __str__(self) -> str:
        return f"attempting to read `{self._path}` resulted in an error: {self.error}"


class SubstitutionError(CapGlobError, ValueError):
    """Values could not be substituted into a pattern."""

    def __init__(self, msg: str, group: Optional[int] = None) -> None:
        super().__init__(f"substitution error: {msg}")
        self.group = group

    @classmethod
    def missing_group(cls, group: int) -> "SubstitutionError":
        return cls(f"missing group {group}", group)

    @classmethod
    def unexpected_wildcard(cls) -> "SubstitutionError":
        return cls("unexpected wildcard")
