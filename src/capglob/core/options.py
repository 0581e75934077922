from dataclasses import dataclass

__all__ = ["MatchOptions"]


@dataclass(frozen=True)
class MatchOptions:
    """Options that modify how a pattern is matched.

    `case_sensitive`
        When false, literal characters and character classes compare without
        regard to case.

    `require_literal_separator`
        When true, the path separator must be matched by a literal separator
        in the pattern; `*`, `?` and `[...]` never match it.

    `require_literal_leading_dot`
        When true, a `.` at the start of a file name must be matched by a
        literal `.`; `*`, `?`, `**` and `[...]` never match it. This mirrors
        the shell convention of hidden files.
    """

    case_sensitive: bool = True
    require_literal_separator: bool = False
    require_literal_leading_dot: bool = False


DEFAULT_MATCH_OPTIONS = MatchOptions()
