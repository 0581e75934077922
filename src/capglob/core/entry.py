from __future__ import annotations

from pathlib import Path
from typing import Iterator, Optional, Sequence, Tuple

__all__ = ["Entry", "Span"]

Span = Tuple[int, int]


class Entry:
    """A matched path together with the spans of its capture groups.

    Spans are `(start, end)` offsets into `str(entry)`. Group `0` is the whole
    path, groups `1..n` are the parenthesized parts of the pattern in the
    order of their opening parenthesis.
    """

    __slots__ = ("_path", "_spans")

    def __init__(self, path: str, spans: Sequence[Span] = ()) -> None:
        self._path = path
        self._spans = tuple(spans)

    @property
    def path(self) -> Path:
        return Path(self._path)

    @property
    def spans(self) -> Tuple[Span, ...]:
        return self._spans

    def span(self, n: int) -> Optional[Span]:
        if n == 0:
            return (0, len(self._path))
        if 0 < n <= len(self._spans):
            return self._spans[n - 1]
        return None

    def group(self, n: int) -> Optional[str]:
        span = self.span(n)
        if span is None:
            return None
        return self._path[span[0] : span[1]]

    def groups(self) -> Tuple[str, ...]:
        return tuple(self._path[a:b] for a, b in self._spans)

    def iter_parts(self) -> Iterator[Tuple[Optional[int], str]]:
        """Split the path into alternating uncaptured and captured parts.

        Yields `(None, text)` for text outside any group and `(n, text)` for
        the text of group `n`. Joining all texts gives back the path.
        """
        pos = 0
        for n, (start, end) in enumerate(self._spans, 1):
            if start > pos:
                yield None, self._path[pos:start]
            yield n, self._path[start:end]
            pos = max(pos, end)
        if pos < len(self._path):
            yield None, self._path[pos:]

    def __fspath__(self) -> str:
        return self._path

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}(path={self._path!r}, groups={self.groups()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return self._path == other._path and self._spans == other._spans

    def __hash__(self) -> int:
        return hash((self._path, self._spans))
