import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from ..__version__ import __version__
from ..core.errors import GlobError, PatternError
from ..core.glob import glob_with
from ..core.options import MatchOptions
from ..core.pattern import Pattern, is_separator
from ..core.utils.logging import LoggingDescriptor
from .application import Application, ColoredOutput, OutputFormat, pass_application
from .click_helper import EnumChoice

__all__ = ["capglob", "main"]

_logger = LoggingDescriptor(name=__package__)


def _compile_patterns(patterns: Tuple[str, ...], dirs_only: bool) -> List[Pattern]:
    result = []
    for p in patterns:
        if dirs_only and not (p and is_separator(p[-1])):
            p += "/"
        try:
            result.append(Pattern(p))
        except PatternError as e:
            raise click.BadParameter(f"{p!r}: {e}", param_hint="PATTERN") from e
    return result


def _selected_groups(groups: Tuple[int, ...], group_count: int) -> List[int]:
    return list(groups) if groups else list(range(1, group_count + 1))


@click.command(context_settings={"auto_envvar_prefix": "CAPGLOB"})
@click.option(
    "-i",
    "--ignore-case",
    is_flag=True,
    show_envvar=True,
    help="Match letters regardless of their case.",
)
@click.option(
    "--literal-separator",
    is_flag=True,
    show_envvar=True,
    help="Wildcards never match a path separator.",
)
@click.option(
    "--literal-leading-dot",
    is_flag=True,
    show_envvar=True,
    help="Wildcards never match a leading dot, hidden files must be matched explicitly.",
)
@click.option(
    "-C",
    "--root-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    show_envvar=True,
    help="Match relative patterns from this directory instead of the current one.",
)
@click.option(
    "-d",
    "--dirs-only",
    is_flag=True,
    show_envvar=True,
    help="Only match directories.",
)
@click.option(
    "-g",
    "--group",
    "groups",
    type=click.IntRange(min=0),
    multiple=True,
    help="Print only the given capture group. Can be specified multiple times. 0 is the whole path.",
)
@click.option(
    "-f",
    "--format",
    "format",
    type=EnumChoice(OutputFormat),
    default=None,
    show_envvar=True,
    help="Set the output format.",
)
@click.option(
    "--color / --no-color",
    "color",
    default=None,
    help="Whether or not to display colored output (default is auto-detection).",
    show_envvar=True,
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enables verbose mode.",
    show_envvar=True,
)
@click.option(
    "--log",
    is_flag=True,
    help="Enables logging.",
    show_envvar=True,
)
@click.option(
    "--log-level",
    type=click.Choice(["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Sets the log level.",
    default="CRITICAL",
    show_default=True,
    show_envvar=True,
)
@click.option(
    "--log-calls",
    is_flag=True,
    help="Enables logging of method/function calls.",
    show_envvar=True,
)
@click.version_option(version=__version__, prog_name="capglob")
@click.argument("patterns", nargs=-1, required=True)
@pass_application
def capglob(
    app: Application,
    ignore_case: bool,
    literal_separator: bool,
    literal_leading_dot: bool,
    root_dir: Optional[Path],
    dirs_only: bool,
    groups: Tuple[int, ...],
    format: Optional[OutputFormat],
    color: Optional[bool],
    verbose: bool,
    log: bool,
    log_level: str,
    log_calls: bool,
    patterns: Tuple[str, ...],
) -> None:
    """\
    Lists the paths matching the glob PATTERNS and the text of their capture groups.

    A pattern may contain `?`, `*`, `**`, `[...]` and capture groups in
    parentheses. Every match is printed on its own line, followed by its
    groups separated by tabs.

    \b
    Examples:
    ```
    capglob 'tests/(*).spec.js'
    capglob -C src '(*)/__init__.py'
    capglob --format json '/usr/share/zoneinfo/(*/*)'
    ```
    """
    app.config.verbose = verbose
    app.config.output_format = format
    if color is None:
        app.config.colored_output = ColoredOutput.AUTO
    elif color:
        app.config.colored_output = ColoredOutput.YES
    else:
        app.config.colored_output = ColoredOutput.NO
    app.config.log_enabled = log
    app.config.log_level = log_level
    app.config.log_calls = log_calls

    if log:
        if log_calls:
            LoggingDescriptor.set_call_tracing(True)

        logging.basicConfig(level=log_level, format="%(name)s:%(levelname)s: %(message)s")

    compiled = _compile_patterns(patterns, dirs_only)

    options = MatchOptions(
        case_sensitive=not ignore_case,
        require_literal_separator=literal_separator,
        require_literal_leading_dot=literal_leading_dot,
    )
    app.verbose(lambda: f"Match options: {options}")

    matches: List[Dict[str, Any]] = []
    matched = 0
    errors = 0

    for pattern in compiled:
        app.verbose(lambda: f"Searching {pattern.pattern!r}")

        with _logger.measure_time(lambda: f"searching {pattern.pattern!r}"):
            for result in glob_with(pattern, options, root_dir=root_dir):
                if isinstance(result, GlobError):
                    errors += 1
                    app.error(str(result))
                    continue

                matched += 1
                selected = [result.group(n) or "" for n in _selected_groups(groups, pattern.group_count)]
                _logger.debug(lambda: f"{pattern.pattern!r} matched {result!r}")

                if format in (None, OutputFormat.TEXT):
                    app.echo("\t".join([str(result), *selected]))
                else:
                    matches.append({"pattern": pattern.pattern, "path": str(result), "groups": selected})

    if format not in (None, OutputFormat.TEXT):
        app.print_data({"matches": matches})

    if errors:
        app.warning(f"{errors} director{'y' if errors == 1 else 'ies'} could not be read")

    app.exit(0 if matched else 1)


def main() -> None:
    capglob(prog_name="capglob", windows_expand_args=False)
