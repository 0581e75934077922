from __future__ import annotations

import functools
import os
from enum import Enum
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple, Union

from .entry import Entry, Span
from .errors import PatternError, SubstitutionError
from .options import DEFAULT_MATCH_OPTIONS, MatchOptions
from .utils.logging import LoggingDescriptor

__all__ = [
    "CharSpecifier",
    "Pattern",
    "Segment",
    "Token",
    "TokenKind",
    "anchor_length",
    "is_separator",
    "match_segment",
]

_logger = LoggingDescriptor(name=__name__)

SEPARATORS = frozenset(s for s in ("/", os.sep, os.altsep) if s)

ERROR_WILDCARDS = "wildcards are either regular `*` or recursive `**`"
ERROR_RECURSIVE_WILDCARDS = "recursive wildcards must form a single path component"
ERROR_RECURSIVE_CAPTURE = "capture groups cannot start or end at a recursive wildcard"
ERROR_INVALID_RANGE = "invalid range pattern"
ERROR_INVALID_CHAR_RANGE = "invalid character range"
ERROR_NESTED_GROUP = "nested capture groups are not supported"
ERROR_UNMATCHED_OPEN = "unmatched opening parenthesis"
ERROR_UNMATCHED_CLOSE = "unmatched closing parenthesis"

_META_CHARS = "?*[]()"


def is_separator(c: str) -> bool:
    return c in SEPARATORS


class TokenKind(Enum):
    CHAR = "char"
    ANY_CHAR = "any_char"
    ANY_SEQUENCE = "any_sequence"
    ANY_RECURSIVE_SEQUENCE = "any_recursive_sequence"
    ANY_WITHIN = "any_within"
    ANY_EXCEPT = "any_except"
    START_CAPTURE = "start_capture"
    END_CAPTURE = "end_capture"


class CharSpecifier(NamedTuple):
    """A single character (`start == end`) or an inclusive range."""

    start: str
    end: str

    def contains(self, c: str, case_sensitive: bool) -> bool:
        if self.start <= c <= self.end:
            return True
        if not case_sensitive:
            return self.start <= c.lower() <= self.end or self.start <= c.upper() <= self.end
        return False


class Token(NamedTuple):
    kind: TokenKind
    value: Any = None

    def __repr__(self) -> str:
        if self.value is None:
            return self.kind.name
        return f"{self.kind.name}({self.value!r})"


ANY_CHAR = Token(TokenKind.ANY_CHAR)
ANY_SEQUENCE = Token(TokenKind.ANY_SEQUENCE)
ANY_RECURSIVE_SEQUENCE = Token(TokenKind.ANY_RECURSIVE_SEQUENCE)

_WILDCARD_KINDS = frozenset(
    {
        TokenKind.ANY_CHAR,
        TokenKind.ANY_SEQUENCE,
        TokenKind.ANY_RECURSIVE_SEQUENCE,
        TokenKind.ANY_WITHIN,
        TokenKind.ANY_EXCEPT,
    }
)
_CAPTURE_KINDS = frozenset({TokenKind.START_CAPTURE, TokenKind.END_CAPTURE})


class Segment(NamedTuple):
    """One path component of a pattern."""

    tokens: Tuple[Token, ...]
    is_recursive: bool = False

    @property
    def literal(self) -> Optional[str]:
        """The plain text of the segment, or `None` if it is not plain text."""
        if self.is_recursive or any(t.kind is not TokenKind.CHAR for t in self.tokens):
            return None
        return "".join(t.value for t in self.tokens)

    @property
    def has_captures(self) -> bool:
        return any(t.kind in _CAPTURE_KINDS for t in self.tokens)

    def __str__(self) -> str:
        return _tokens_to_str(self.tokens)


RECURSIVE_SEGMENT = Segment((ANY_RECURSIVE_SEQUENCE,), True)


def _tokens_to_str(tokens: Sequence[Token]) -> str:
    result = []
    for t in tokens:
        if t.kind is TokenKind.CHAR:
            result.append(Pattern.escape(t.value))
        elif t.kind is TokenKind.ANY_CHAR:
            result.append("?")
        elif t.kind is TokenKind.ANY_SEQUENCE:
            result.append("*")
        elif t.kind is TokenKind.ANY_RECURSIVE_SEQUENCE:
            result.append("**")
        elif t.kind in (TokenKind.ANY_WITHIN, TokenKind.ANY_EXCEPT):
            result.append("[!" if t.kind is TokenKind.ANY_EXCEPT else "[")
            result.extend(s.start if s.start == s.end else f"{s.start}-{s.end}" for s in t.value)
            result.append("]")
        elif t.kind is TokenKind.START_CAPTURE:
            result.append("(")
        else:
            result.append(")")
    return "".join(result)


def anchor_length(pattern: str) -> int:
    drive, _ = os.path.splitdrive(pattern)
    i = len(drive)
    while i < len(pattern) and is_separator(pattern[i]):
        i += 1
    return i


def _parse_char_specifiers(pattern: str, start: int, end: int) -> Tuple[CharSpecifier, ...]:
    cs = []
    i = start
    while i < end:
        if i + 2 < end and pattern[i + 1] == "-":
            if pattern[i + 2] < pattern[i]:
                raise PatternError(pattern, i, ERROR_INVALID_CHAR_RANGE)
            cs.append(CharSpecifier(pattern[i], pattern[i + 2]))
            i += 3
        else:
            cs.append(CharSpecifier(pattern[i], pattern[i]))
            i += 1
    return tuple(cs)


class _Compiled(NamedTuple):
    anchor: str
    segments: Tuple[Segment, ...]
    tokens: Tuple[Token, ...]
    group_count: int


@functools.lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> _Compiled:
    n = len(pattern)
    i = anchor_length(pattern)
    anchor = pattern[:i]

    tokens: List[Token] = [Token(TokenKind.CHAR, c) for c in anchor]
    segments: List[Segment] = []
    current: List[Token] = []
    segment_start = i

    group_count = 0
    open_group: Optional[Tuple[int, int]] = None

    def finish_segment() -> None:
        if not current:
            return
        if current[0].kind is TokenKind.ANY_RECURSIVE_SEQUENCE:
            # consecutive `**` are the same as a single one
            if not segments or not segments[-1].is_recursive:
                segments.append(RECURSIVE_SEGMENT)
        else:
            segments.append(Segment(tuple(current)))

    while i < n:
        c = pattern[i]

        if is_separator(c):
            recursive = bool(current) and current[0].kind is TokenKind.ANY_RECURSIVE_SEQUENCE
            finish_segment()
            current = []
            if not recursive:
                tokens.append(Token(TokenKind.CHAR, c))
            i += 1
            segment_start = i

        elif c == "?":
            current.append(ANY_CHAR)
            tokens.append(ANY_CHAR)
            i += 1

        elif c == "*":
            old = i
            while i < n and pattern[i] == "*":
                i += 1

            count = i - old
            if count > 2:
                raise PatternError(pattern, old + 2, ERROR_WILDCARDS)

            if count == 1:
                current.append(ANY_SEQUENCE)
                tokens.append(ANY_SEQUENCE)
                continue

            if old > segment_start:
                prev = pattern[old - 1]
                raise PatternError(
                    pattern, old - 1, ERROR_RECURSIVE_CAPTURE if prev in "()" else ERROR_RECURSIVE_WILDCARDS
                )
            if i < n and not is_separator(pattern[i]):
                raise PatternError(
                    pattern, i, ERROR_RECURSIVE_CAPTURE if pattern[i] in "()" else ERROR_RECURSIVE_WILDCARDS
                )

            current.append(ANY_RECURSIVE_SEQUENCE)
            if not tokens or tokens[-1].kind is not TokenKind.ANY_RECURSIVE_SEQUENCE:
                tokens.append(ANY_RECURSIVE_SEQUENCE)

        elif c == "[":
            token: Optional[Token] = None
            if i + 1 < n and pattern[i + 1] in "!^":
                if i + 4 <= n:
                    j = pattern.find("]", i + 3)
                    if j >= 0:
                        token = Token(TokenKind.ANY_EXCEPT, _parse_char_specifiers(pattern, i + 2, j))
            elif i + 3 <= n:
                j = pattern.find("]", i + 2)
                if j >= 0:
                    token = Token(TokenKind.ANY_WITHIN, _parse_char_specifiers(pattern, i + 1, j))

            if token is None:
                raise PatternError(pattern, i, ERROR_INVALID_RANGE)

            current.append(token)
            tokens.append(token)
            i = j + 1

        elif c == "(":
            if open_group is not None:
                raise PatternError(pattern, i, ERROR_NESTED_GROUP)
            group_count += 1
            open_group = (group_count, i)
            token = Token(TokenKind.START_CAPTURE, group_count)
            current.append(token)
            tokens.append(token)
            i += 1

        elif c == ")":
            if open_group is None:
                raise PatternError(pattern, i, ERROR_UNMATCHED_CLOSE)
            token = Token(TokenKind.END_CAPTURE, open_group[0])
            open_group = None
            current.append(token)
            tokens.append(token)
            i += 1

        else:
            token = Token(TokenKind.CHAR, c)
            current.append(token)
            tokens.append(token)
            i += 1

    if open_group is not None:
        raise PatternError(pattern, open_group[1], ERROR_UNMATCHED_OPEN)

    finish_segment()

    return _Compiled(anchor, tuple(segments), tuple(tokens), group_count)


class _MatchResult(Enum):
    MATCH = "match"
    SUB_PATTERN_DOESNT_MATCH = "sub_pattern_doesnt_match"
    ENTIRE_PATTERN_DOESNT_MATCH = "entire_pattern_doesnt_match"


Captures = Tuple[Span, ...]


def _chars_eq(a: str, b: str, case_sensitive: bool) -> bool:
    if a == b:
        return True
    if is_separator(a) and is_separator(b):
        return True
    return not case_sensitive and a.lower() == b.lower()


def _set_span(captures: Captures, group: int, span: Span) -> Captures:
    return captures[: group - 1] + (span,) + captures[group:]


def _match_from(
    tokens: Sequence[Token],
    ti: int,
    text: str,
    pos: int,
    follows_separator: bool,
    captures: Captures,
    options: MatchOptions,
) -> Tuple[_MatchResult, Captures]:
    """Match `tokens[ti:]` against `text[pos:]`.

    Captures are threaded through as immutable tuples, so a branch that fails
    can never leak the offsets it recorded into the branch that succeeds.
    """
    n = len(text)

    while ti < len(tokens):
        token = tokens[ti]
        kind = token.kind

        if kind is TokenKind.ANY_SEQUENCE or kind is TokenKind.ANY_RECURSIVE_SEQUENCE:
            result = _match_from(tokens, ti + 1, text, pos, follows_separator, captures, options)
            if result[0] is not _MatchResult.SUB_PATTERN_DOESNT_MATCH:
                return result

            while pos < n:
                c = text[pos]
                pos += 1

                if follows_separator and options.require_literal_leading_dot and c == ".":
                    return _MatchResult.SUB_PATTERN_DOESNT_MATCH, captures

                follows_separator = is_separator(c)

                if kind is TokenKind.ANY_RECURSIVE_SEQUENCE:
                    # `**` only hands over to the rest of the pattern at the start of a component
                    if not follows_separator:
                        continue
                elif options.require_literal_separator and follows_separator:
                    return _MatchResult.SUB_PATTERN_DOESNT_MATCH, captures

                result = _match_from(tokens, ti + 1, text, pos, follows_separator, captures, options)
                if result[0] is not _MatchResult.SUB_PATTERN_DOESNT_MATCH:
                    return result

        elif kind is TokenKind.START_CAPTURE:
            captures = _set_span(captures, token.value, (pos, pos))

        elif kind is TokenKind.END_CAPTURE:
            start = captures[token.value - 1][0]
            captures = _set_span(captures, token.value, (start, max(start, pos)))

        else:
            if pos >= n:
                return _MatchResult.ENTIRE_PATTERN_DOESNT_MATCH, captures

            c = text[pos]
            pos += 1
            is_sep = is_separator(c)

            if kind is TokenKind.CHAR:
                ok = _chars_eq(c, token.value, options.case_sensitive)
            elif (options.require_literal_separator and is_sep) or (
                follows_separator and options.require_literal_leading_dot and c == "."
            ):
                ok = False
            elif kind is TokenKind.ANY_CHAR:
                ok = True
            else:
                found = any(s.contains(c, options.case_sensitive) for s in token.value)
                ok = found if kind is TokenKind.ANY_WITHIN else not found

            if not ok:
                return _MatchResult.SUB_PATTERN_DOESNT_MATCH, captures

            follows_separator = is_sep

        ti += 1

    if pos == n:
        return _MatchResult.MATCH, captures

    return _MatchResult.SUB_PATTERN_DOESNT_MATCH, captures


def match_segment(
    segment: Segment,
    text: str,
    start: int,
    captures: Captures,
    options: MatchOptions = DEFAULT_MATCH_OPTIONS,
) -> Optional[Captures]:
    """Match one segment against the file name `text[start:]`.

    Group boundaries are recorded as offsets into `text`, which is the whole
    path the file name is the last component of. Returns the updated captures
    or `None` if the name does not match.
    """
    result, new_captures = _match_from(segment.tokens, 0, text, start, True, captures, options)
    if result is _MatchResult.MATCH:
        return new_captures
    return None


PathLike = Union[str, "os.PathLike[str]"]


class Pattern:
    """A compiled Unix shell style pattern with capture groups.

    - `?` matches any single character.
    - `*` matches any, possibly empty, sequence of characters.
    - `**` matches the current directory and any subdirectories. It must form
      a whole path component, so `**a` and `a**` are errors, and so is a
      sequence of three or more `*`.
    - `[...]` matches one of the enclosed characters or ranges like `[0-9]`,
      `[!...]` or `[^...]` any character not enclosed. A `]` right after the
      opening bracket belongs to the set, a `-` at the start or end is literal.
    - `(...)` is a capture group. Groups are numbered from 1 by their opening
      parenthesis and may span several path components, they cannot be
      nested and cannot begin or end directly at a `**`.

    Metacharacters are matched literally by enclosing them in brackets, see
    `Pattern.escape`.
    """

    __slots__ = ("_pattern", "_compiled")

    @_logger.call
    def __init__(self, pattern: str) -> None:
        self._pattern = pattern
        self._compiled = _compile_pattern(pattern)

    @classmethod
    def compile(cls, pattern: Union[str, Pattern]) -> Pattern:
        if isinstance(pattern, Pattern):
            return pattern
        return cls(pattern)

    @property
    def pattern(self) -> str:
        return self._pattern

    @property
    def anchor(self) -> str:
        return self._compiled.anchor

    @property
    def is_absolute(self) -> bool:
        return bool(self._compiled.anchor)

    @property
    def segments(self) -> Tuple[Segment, ...]:
        return self._compiled.segments

    @property
    def tokens(self) -> Tuple[Token, ...]:
        return self._compiled.tokens

    @property
    def group_count(self) -> int:
        return self._compiled.group_count

    @property
    def is_recursive(self) -> bool:
        return any(s.is_recursive for s in self._compiled.segments)

    @staticmethod
    def escape(s: str) -> str:
        """Escape all metacharacters of `s` so the result matches `s` literally."""
        return "".join(f"[{c}]" if c in _META_CHARS else c for c in s)

    def _empty_captures(self) -> Captures:
        return ((0, 0),) * self._compiled.group_count

    def captures(self, text: str, options: Optional[MatchOptions] = None) -> Optional[Entry]:
        """Match the whole of `text` and return an entry with its capture groups.

        >>> Pattern("(*).txt").captures("some.txt").group(1)
        'some'
        """
        result, captures = _match_from(
            self._compiled.tokens,
            0,
            text,
            0,
            True,
            self._empty_captures(),
            options or DEFAULT_MATCH_OPTIONS,
        )
        if result is _MatchResult.MATCH:
            return Entry(text, captures)
        return None

    def captures_path(self, path: PathLike, options: Optional[MatchOptions] = None) -> Optional[Entry]:
        return self.captures(os.fspath(path), options)

    def matches(self, text: str, options: Optional[MatchOptions] = None) -> bool:
        """Return if the whole of `text` matches this pattern.

        >>> Pattern("c?t").matches("cat")
        True
        >>> Pattern("k[!e]tteh").matches("kitteh")
        True
        """
        return self.captures(text, options) is not None

    def matches_path(self, path: PathLike, options: Optional[MatchOptions] = None) -> bool:
        return self.captures_path(path, options) is not None

    def substitute(self, values: Sequence[str]) -> str:
        """Build a path by replacing each capture group with `values[n - 1]`.

        Wildcards outside of capture groups cannot be substituted. The result
        is not checked against the pattern.

        >>> Pattern("images/(*).jpg").substitute(["cat"])
        'images/cat.jpg'
        """
        result: List[str] = []
        tokens = iter(self._compiled.tokens)
        for token in tokens:
            if token.kind is TokenKind.CHAR:
                result.append(token.value)
            elif token.kind is TokenKind.START_CAPTURE:
                if token.value > len(values):
                    raise SubstitutionError.missing_group(token.value)
                result.append(values[token.value - 1])
                for t in tokens:
                    if t.kind is TokenKind.END_CAPTURE:
                        break
            elif token.kind in _WILDCARD_KINDS:
                raise SubstitutionError.unexpected_wildcard()
        return "".join(result)

    def __str__(self) -> str:
        return self._pattern

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}(pattern={self._pattern!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pattern):
            return NotImplemented
        return self._pattern == other._pattern

    def __hash__(self) -> int:
        return hash(self._pattern)
