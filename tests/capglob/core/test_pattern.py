from pathlib import PurePosixPath
from typing import List, Optional

import pytest

from capglob.core.errors import PatternError, SubstitutionError
from capglob.core.options import MatchOptions
from capglob.core.pattern import (
    ERROR_INVALID_CHAR_RANGE,
    ERROR_INVALID_RANGE,
    ERROR_NESTED_GROUP,
    ERROR_RECURSIVE_CAPTURE,
    ERROR_RECURSIVE_WILDCARDS,
    ERROR_UNMATCHED_CLOSE,
    ERROR_UNMATCHED_OPEN,
    ERROR_WILDCARDS,
    Pattern,
    TokenKind,
)

IGNORE_CASE = MatchOptions(case_sensitive=False)
LITERAL_SEPARATOR = MatchOptions(require_literal_separator=True)
LITERAL_LEADING_DOT = MatchOptions(require_literal_leading_dot=True)


@pytest.mark.parametrize(
    ("pattern", "pos", "msg"),
    [
        ("a/**b", 4, ERROR_RECURSIVE_WILDCARDS),
        ("a/bc**", 3, ERROR_RECURSIVE_WILDCARDS),
        ("a/b**c**d", 2, ERROR_RECURSIVE_WILDCARDS),
        ("a**b", 0, ERROR_RECURSIVE_WILDCARDS),
        ("a/*****", 4, ERROR_WILDCARDS),
        ("***", 2, ERROR_WILDCARDS),
        ("(*.txt", 0, ERROR_UNMATCHED_OPEN),
        ("a/(b/c", 2, ERROR_UNMATCHED_OPEN),
        ("*.txt)", 5, ERROR_UNMATCHED_CLOSE),
        ("((a))", 1, ERROR_NESTED_GROUP),
        ("(a/(b))", 3, ERROR_NESTED_GROUP),
        ("(**)/a", 0, ERROR_RECURSIVE_CAPTURE),
        ("(a/**)", 5, ERROR_RECURSIVE_CAPTURE),
        ("[abc", 0, ERROR_INVALID_RANGE),
        ("a[]", 1, ERROR_INVALID_RANGE),
        ("[!]", 0, ERROR_INVALID_RANGE),
        ("x[!a", 1, ERROR_INVALID_RANGE),
        ("[z-a]", 1, ERROR_INVALID_CHAR_RANGE),
    ],
)
def test_invalid_patterns_report_position_and_message(pattern: str, pos: int, msg: str) -> None:
    with pytest.raises(PatternError) as e:
        Pattern(pattern)

    assert e.value.pos == pos
    assert e.value.msg == msg
    assert e.value.pattern == pattern
    assert str(e.value) == f"Pattern syntax error near position {pos}: {msg}"


def test_pattern_error_is_a_value_error() -> None:
    with pytest.raises(ValueError, match="unmatched opening parenthesis"):
        Pattern("(*.txt")


@pytest.mark.parametrize(
    "pattern",
    [
        "",
        "a",
        "**",
        "a/**",
        "**/a",
        "a/**/b",
        "a/**/**/b",
        "(a/**/b)",
        "(*)/(*)",
        "[]]",
        "[!]]",
        "[-a]",
        "[a-]",
        "[^a-z]",
        "[(][)][*][?][[]",
    ],
)
def test_valid_patterns_compile(pattern: str) -> None:
    assert Pattern(pattern).pattern == pattern


@pytest.mark.parametrize(
    ("pattern", "text", "expected"),
    [
        ("abc", "abc", True),
        ("abc", "abd", False),
        ("c?t", "cat", True),
        ("c?t", "ct", False),
        ("*.txt", "a.txt", True),
        ("*.txt", ".txt", True),
        ("*.txt", "a.txt.bak", False),
        ("*", "", True),
        ("a*b*c", "aXXbYYc", True),
        ("a*b*c", "aXXbYY", False),
        ("a/**/b", "a/b", True),
        ("a/**/b", "a/x/b", True),
        ("a/**/b", "a/x/y/b", True),
        ("a/**/b", "a/xb", False),
        ("**/b", "b", True),
        ("**/b", "x/y/b", True),
        ("a/**", "a/x/y", True),
        ("a/**", "a", False),
        ("k[!e]tteh", "kitteh", True),
        ("k[!e]tteh", "ketteh", False),
        ("[^0-9]", "a", True),
        ("[^0-9]", "5", False),
        ("[a-cx]", "b", True),
        ("[a-cx]", "x", True),
        ("[a-cx]", "d", False),
        ("[]]", "]", True),
        ("[!]]", "a", True),
        ("[-a]", "-", True),
        ("[a-]", "-", True),
        ("[(]x[)]", "(x)", True),
    ],
)
def test_matches(pattern: str, text: str, expected: bool) -> None:
    assert Pattern(pattern).matches(text) == expected


@pytest.mark.parametrize(
    ("pattern", "text", "options", "expected"),
    [
        ("*.JPG", "photo.jpg", None, False),
        ("*.JPG", "photo.jpg", IGNORE_CASE, True),
        ("[A-Z]", "q", IGNORE_CASE, True),
        ("[a-z]", "Q", IGNORE_CASE, True),
        ("[!a-z]", "Q", IGNORE_CASE, False),
        ("a*b", "a/b", None, True),
        ("a*b", "a/b", LITERAL_SEPARATOR, False),
        ("a?b", "a/b", LITERAL_SEPARATOR, False),
        ("a/b", "a/b", LITERAL_SEPARATOR, True),
        ("*", ".hidden", None, True),
        ("*", ".hidden", LITERAL_LEADING_DOT, False),
        ("?hidden", ".hidden", LITERAL_LEADING_DOT, False),
        ("[.]hidden", ".hidden", LITERAL_LEADING_DOT, False),
        (".*", ".hidden", LITERAL_LEADING_DOT, True),
        ("a/*", "a/.b", LITERAL_LEADING_DOT, False),
        ("a/*", "a/b.c", LITERAL_LEADING_DOT, True),
        ("**/x", ".git/x", LITERAL_LEADING_DOT, False),
        ("**/x", "src/x", LITERAL_LEADING_DOT, True),
    ],
)
def test_matches_with_options(pattern: str, text: str, options: Optional[MatchOptions], expected: bool) -> None:
    assert Pattern(pattern).matches(text, options) == expected


class TestCaptures:
    """Capture groups of whole string matches."""

    def test_simple_group(self) -> None:
        """A single group around a wildcard."""
        entry = Pattern("(*).txt").captures("some.txt")

        assert entry is not None
        assert entry.group(1) == "some"
        assert entry.span(1) == (0, 4)

    def test_no_match_returns_none(self) -> None:
        """Non matching text has no captures."""
        assert Pattern("(*).txt").captures("some.json") is None

    def test_group_spanning_segments(self) -> None:
        """A group may contain separators."""
        entry = Pattern("/usr/share/zoneinfo/(*/*)").captures("/usr/share/zoneinfo/America/New_York")

        assert entry is not None
        assert entry.group(1) == "America/New_York"

    def test_groups_are_numbered_by_opening_parenthesis(self) -> None:
        """Groups are counted from 1 over the whole pattern."""
        pattern = Pattern("(a)/(*)/b(?)")
        entry = pattern.captures("a/xyz/bq")

        assert pattern.group_count == 3
        assert entry is not None
        assert entry.groups() == ("a", "xyz", "q")

    def test_empty_group(self) -> None:
        """A group may match nothing."""
        entry = Pattern("a()b").captures("ab")

        assert entry is not None
        assert entry.group(1) == ""
        assert entry.span(1) == (1, 1)

    def test_failed_branches_do_not_leak_captures(self) -> None:
        """Offsets recorded by a branch that backtracks are dropped."""
        entry = Pattern("(*)x(*)").captures("axbxc")

        assert entry is not None
        assert entry.groups() == ("a", "bxc")

    def test_recursive_wildcard_before_group(self) -> None:
        """With literal separators the group only takes the file name."""
        entry = Pattern("a/**/(*).py").captures("a/x/y/mod.py", LITERAL_SEPARATOR)

        assert entry is not None
        assert entry.group(1) == "mod"

    def test_captures_path(self) -> None:
        """Path objects are matched by their string form."""
        entry = Pattern("tests/(*).spec.js").captures_path(PurePosixPath("tests/login.spec.js"))

        assert entry is not None
        assert entry.group(1) == "login"
        assert Pattern("tests/*.js").matches_path(PurePosixPath("tests/login.spec.js"))

    @pytest.mark.parametrize(
        ("pattern", "text"),
        [
            ("(*)-(*).(*)", "pkg-a.tar.gz"),
            ("src/(*)/(*).py", "src/a/c.py"),
            ("(a)/(b*)", "a/bcd"),
        ],
    )
    def test_parts_reconstruct_the_text(self, pattern: str, text: str) -> None:
        """Captured and uncaptured parts put together give back the text."""
        entry = Pattern(pattern).captures(text)

        assert entry is not None
        assert "".join(t for _, t in entry.iter_parts()) == text

        last_end = 0
        for start, end in entry.spans:
            assert last_end <= start <= end <= len(text)
            last_end = end


class TestStructure:
    """Segments and tokens of compiled patterns."""

    def test_segments(self) -> None:
        """Every path component becomes a segment."""
        pattern = Pattern("a/*.txt")

        assert len(pattern.segments) == 2
        assert pattern.segments[0].literal == "a"
        assert pattern.segments[1].literal is None
        assert not pattern.is_recursive

    def test_consecutive_recursive_wildcards_collapse(self) -> None:
        """`**/**` is the same as `**`."""
        pattern = Pattern("a/**/**/b")

        assert [s.is_recursive for s in pattern.segments] == [False, True, False]
        assert [t.kind for t in pattern.tokens].count(TokenKind.ANY_RECURSIVE_SEQUENCE) == 1
        assert pattern.is_recursive

    def test_empty_components_are_skipped(self) -> None:
        """Repeated separators do not create empty segments."""
        assert [s.literal for s in Pattern("a//b").segments] == ["a", "b"]

    def test_absolute_pattern(self) -> None:
        """The leading separator is the anchor."""
        pattern = Pattern("/usr/(*)")

        assert pattern.is_absolute
        assert pattern.anchor == "/"
        assert [str(s) for s in pattern.segments] == ["usr", "(*)"]

    def test_relative_pattern(self) -> None:
        """A relative pattern has no anchor."""
        pattern = Pattern("usr/(*)")

        assert not pattern.is_absolute
        assert pattern.anchor == ""

    def test_segment_has_captures(self) -> None:
        """Segments know if they open or close a group."""
        assert [s.has_captures for s in Pattern("a/(b/c)/d").segments] == [False, True, True, False]

    def test_equality(self) -> None:
        """Patterns compare by their text."""
        assert Pattern("a/*") == Pattern("a/*")
        assert hash(Pattern("a/*")) == hash(Pattern("a/*"))
        assert Pattern("a/*") != Pattern("a/?")

    def test_compile_returns_existing_pattern(self) -> None:
        """Compiling a pattern twice is a no-op."""
        pattern = Pattern("a/*")

        assert Pattern.compile(pattern) is pattern
        assert Pattern.compile("a/*") == pattern


@pytest.mark.parametrize(
    ("pattern", "values", "expected"),
    [
        ("images/(*).jpg", ["cat"], "images/cat.jpg"),
        ("(*)/(*)", ["a", "b"], "a/b"),
        ("/abs/(*)", ["x"], "/abs/x"),
        ("plain/path", [], "plain/path"),
        ("(a*)b", ["zzz"], "zzzb"),
    ],
)
def test_substitute(pattern: str, values: List[str], expected: str) -> None:
    assert Pattern(pattern).substitute(values) == expected


def test_substitute_missing_group() -> None:
    with pytest.raises(SubstitutionError, match="missing group 2") as e:
        Pattern("(*)/(*)").substitute(["a"])

    assert e.value.group == 2


def test_substitute_wildcard_outside_group() -> None:
    with pytest.raises(SubstitutionError, match="unexpected wildcard") as e:
        Pattern("*/(*)").substitute(["a"])

    assert e.value.group is None


@pytest.mark.parametrize("text", ["a(b)[c]*?.txt", "]", "[", "plain", "!x", "[!x]"])
def test_escape_matches_text_literally(text: str) -> None:
    pattern = Pattern(Pattern.escape(text))

    assert pattern.matches(text)
    assert pattern.group_count == 0
