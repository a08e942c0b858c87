"""Command-line front end: clean a blocklist with whitelist rules.

Rule sources (local files or URLs) are fetched concurrently, indexed into a
:class:`wlruler.ruler.Ruler`, and every line of the source blocklist that is
not whitelisted is written to the output file or standard output.
"""

import logging
from argparse import ArgumentParser, Namespace
from asyncio import run, to_thread
from os import path
from sys import stderr
from typing import Iterator, List, Optional, Sequence, Tuple

from wlruler.constants import DEFAULT_LOG_LEVEL, LOG_LEVELS, VERSION

from .fetcher import fetch
from .io import iter_lines, to_sources, write_output
from .models import Flag, WlrulerError
from .ruler import Ruler

logger = logging.getLogger(__name__)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_RULE_OPTIONS: Tuple[Tuple[str, Flag, bool], ...] = (
    ("whitelist", Flag.NONE, False),
    ("whitelist_all", Flag.ALL, False),
    ("whitelist_regex", Flag.REG, False),
    ("whitelist_rzdb", Flag.RZDB, False),
    ("bypass", Flag.NONE, True),
    ("bypass_all", Flag.ALL, True),
    ("bypass_regex", Flag.REG, True),
    ("bypass_rzdb", Flag.RZDB, True),
)


def build_parser() -> ArgumentParser:
    """Return the argument parser of the ``wlruler`` command."""
    parser = ArgumentParser(
        prog="wlruler",
        description=(
            "A different whitelisting mechanism for blocklist maintainers: "
            "remove whitelisted subjects from a blocklist using plain, ALL, "
            "REG and RZDB rules."
        ),
    )
    parser.add_argument(
        "-s", "--source", required=True, help="The source file to cleanup."
    )
    _add_repeatable(parser, "-w", "--whitelist", "The whitelist file to use.")
    _add_repeatable(
        parser, "-a", "--whitelist-all", "Whitelist file with the ALL flag."
    )
    _add_repeatable(
        parser, "-r", "--whitelist-regex", "Whitelist file with the REG flag."
    )
    _add_repeatable(
        parser, "-z", "--whitelist-rzdb", "Whitelist file with the RZDB flag."
    )
    _add_repeatable(
        parser,
        "-B",
        "--bypass",
        "Bypass file: rules listed here are removed again after the whitelists.",
    )
    _add_repeatable(parser, "-A", "--bypass-all", "Bypass file with the ALL flag.")
    _add_repeatable(parser, "-R", "--bypass-regex", "Bypass file with the REG flag.")
    _add_repeatable(parser, "-Z", "--bypass-rzdb", "Bypass file with the RZDB flag.")
    parser.add_argument(
        "-o",
        "--output",
        default="",
        help="The output file. If not specified, we print to stdout.",
    )
    parser.add_argument(
        "-c",
        "--handle-complement",
        action="store_true",
        help=(
            "Treat www.example.com and example.com as the same subject when "
            "one of them is whitelisted."
        ),
    )
    parser.add_argument(
        "-l",
        "--log-level",
        default=DEFAULT_LOG_LEVEL,
        help=f"The log level to use. One of: {', '.join(LOG_LEVELS)}.",
    )
    parser.add_argument("--version", action="version", version=f"wlruler {VERSION}")
    return parser


def _add_repeatable(parser: ArgumentParser, short: str, long: str, text: str):
    parser.add_argument(
        short,
        long,
        action="append",
        default=[],
        metavar="PATH_OR_URL",
        help=text + " Can be specified multiple times.",
    )


def configure_logging(level: str) -> int:
    """Configure root logging on stderr and return the numeric level.

    Unknown levels fall back to ``error`` with a warning.
    """
    numeric = _LEVELS.get(level.lower())
    if numeric is None:
        print(
            f"Warning: Unrecognized log-level '{level}'. Defaulting to 'error'.",
            file=stderr,
        )
        numeric = logging.ERROR
    logging.basicConfig(
        level=numeric,
        stream=stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return numeric


async def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not any(getattr(args, name) for name, _, bypass in _RULE_OPTIONS if not bypass):
        parser.error("at least one whitelist file must be specified.")

    configure_logging(args.log_level)

    if not path.isfile(args.source):
        logger.error("Source file does not exist.", extra={"file": args.source})
        print(f"Error: source file '{args.source}' does not exist.", file=stderr)
        return 1

    ruler = Ruler(handle_complement=args.handle_complement)

    try:
        if not await _load_rules(ruler, args):
            return 1
        cleaned = _cleaned_lines(ruler, args.source)
        if args.output:
            written = write_output(args.output, cleaned)
            logger.info(
                "Wrote output file.", extra={"file": args.output, "lines": written}
            )
        else:
            logger.debug("No output file specified, printing to stdout.")
            for line in cleaned:
                print(line)
    except WlrulerError as e:
        logger.error("Cleanup failed.", extra={"error": str(e)})
        print(f"Error: {e}", file=stderr)
        return 1

    return 0


async def _load_rules(ruler: Ruler, args: Namespace) -> bool:
    """Fetch every rule source and feed its lines to the ruler.

    Returns False when any source could not be fetched.
    """
    planned: List[Tuple[Flag, bool]] = []
    raw_sources: List[str] = []
    for name, flag, bypass in _RULE_OPTIONS:
        for raw in getattr(args, name):
            planned.append((flag, bypass))
            raw_sources.append(raw)

    sources = to_sources(raw_sources)
    results, failed = await to_thread(fetch, sources)

    if failed:
        for source in failed:
            logger.error("Error fetching rule file.", extra={"file": source.raw})
            print(f"Error: could not fetch '{source.raw}'.", file=stderr)
        return False

    for (flag, bypass), (source, lines) in zip(planned, results):
        logger.debug(
            "Processing rule file.",
            extra={"file": source.raw, "flag": flag.value, "bypass": bypass},
        )
        for line in lines:
            if bypass:
                ruler.remove_rule_with_flag(line, flag)
            else:
                ruler.add_rule_with_flag(line, flag)
    return True


def _cleaned_lines(ruler: Ruler, source: str) -> Iterator[str]:
    """Yield the non-blank source lines holding no whitelisted subject.

    Hosts lines (``0.0.0.0 example.com``) are dropped as soon as one of their
    subjects is whitelisted; comment lines are kept.
    """
    for line in iter_lines(source):
        if line.strip() and not ruler.get_whitelisted_from_line(line):
            yield line


def entrypoint() -> int:
    """Console-script entrypoint."""
    return run(main())
