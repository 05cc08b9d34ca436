"""anew - append lines from stdin to a file, skipping ones already there."""

import argparse
import logging
import os
import sys
from typing import Optional, TextIO

from .config import ConfigError, load_settings
from .core import reconfigure_stream
from .dedup import TargetFileError
from .runner import run_filter

EXIT_OK = 0
EXIT_IO_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATEFMT = "%H:%M:%S"


# ─────────────────────────────────────────────────────────────
# Logging setup
# ─────────────────────────────────────────────────────────────

def setup_logging(level: str = "WARNING", log_file: Optional[str] = None) -> logging.Logger:
    """Configure the package logger: stderr always, plus an optional file."""
    pkg_logger = logging.getLogger("anew")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    # Error channel
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    pkg_logger.addHandler(stderr_handler)

    # File handler (same records, kept across runs)
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        pkg_logger.addHandler(file_handler)

    pkg_logger.setLevel(level)
    return pkg_logger


# ─────────────────────────────────────────────────────────────
# Arguments
# ─────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="anew",
        description="Print lines from stdin that are not yet in FILE and append them to it",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cat new.txt | anew seen.txt          # Print and store unseen lines
  cat new.txt | anew -d seen.txt       # Only print, leave seen.txt alone
  cat new.txt | anew -t -r seen.txt    # Trim, dedup seen.txt, then append
  cat new.txt | anew -ln 10 seen.txt   # Stop after 10 new lines

By default the file's modification time is reset after appending, so
mtime-based tools do not see the new lines; pass --touch to keep it.
        """
    )

    parser.add_argument(
        "file",
        nargs="?",
        default=None,
        help="Target file (omit to only deduplicate stdin)"
    )

    # Flags default to None so unset flags fall back to the config file
    parser.add_argument("-q", dest="quiet", action="store_true", default=None,
                        help="Quiet mode (no output at all)")
    parser.add_argument("-d", dest="dry_run", action="store_true", default=None,
                        help="Don't append anything to the file, just print the new lines")
    parser.add_argument("-t", dest="trim", action="store_true", default=None,
                        help="Trim leading and trailing whitespace before comparison")
    parser.add_argument("-r", dest="rewrite", action="store_true", default=None,
                        help="Rewrite the file to remove duplicates and blank lines, then append")
    parser.add_argument("-ln", dest="max_lines", type=int, default=None, metavar="N",
                        help="Stop after N new lines (default: -1, all lines)")

    parser.add_argument("-s", "--sort", dest="order", action="store_const", const="sorted",
                        default=None, help="Sort lines whenever the file is rewritten")
    parser.add_argument("-i", "--immediate", dest="append_mode", action="store_const",
                        const="immediate", default=None,
                        help="Append each new line as soon as it is read instead of at the end")
    parser.add_argument("--touch", dest="restore_mtime", action="store_false", default=None,
                        help="Leave the file's new modification time in place")

    # Negations, for turning off values set in the config file
    parser.add_argument("--no-quiet", dest="quiet", action="store_false", default=None,
                        help="Echo new lines even if the config sets quiet")
    parser.add_argument("--no-dry-run", dest="dry_run", action="store_false", default=None,
                        help="Write to the file even if the config sets dry_run")
    parser.add_argument("--no-trim", dest="trim", action="store_false", default=None,
                        help="Compare lines as-is even if the config sets trim")
    parser.add_argument("--no-rewrite", dest="rewrite", action="store_false", default=None,
                        help="Only append even if the config sets rewrite")
    parser.add_argument("--no-sort", dest="order", action="store_const", const="first-seen",
                        default=None, help="Keep first-seen order even if the config sets sorted")
    parser.add_argument("--batch", dest="append_mode", action="store_const", const="batch",
                        default=None, help="Append new lines at the end even if the config sets immediate")
    parser.add_argument("--restore-mtime", dest="restore_mtime", action="store_true", default=None,
                        help="Reset the modification time even if the config turns it off")

    parser.add_argument("-c", "--config", default=None,
                        help="YAML config file (default: $ANEW_CONFIG or config/anew.yaml)")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Log progress to stderr (-vv for debug)")
    parser.add_argument("--log-file", default=None, help="Also write log records to this file")

    return parser


OPTION_FIELDS = (
    "quiet", "dry_run", "trim", "rewrite", "max_lines",
    "order", "append_mode", "restore_mtime",
)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)


# ─────────────────────────────────────────────────────────────
# Entry points
# ─────────────────────────────────────────────────────────────

def run(argv=None, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> int:
    """
    Run the filter once.

    Args:
        argv: Command line arguments (default: sys.argv[1:])
        stdin: Input stream (default: sys.stdin)
        stdout: Echo stream (default: sys.stdout)

    Returns:
        Process exit status
    """
    args = parse_args(argv)
    logger = setup_logging()

    overrides = {name: getattr(args, name) for name in OPTION_FIELDS}
    try:
        settings = load_settings(args.config, overrides)
    except ConfigError as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR

    level = settings.logging.level
    if args.verbose:
        level = "DEBUG" if args.verbose > 1 else "INFO"
    try:
        logger = setup_logging(level, args.log_file or settings.logging.file)
    except OSError as e:
        logger.error(f"failed to open log file: {e}")
        return EXIT_CONFIG_ERROR

    if stdin is None:
        stdin = reconfigure_stream(sys.stdin)
    if stdout is None:
        stdout = reconfigure_stream(sys.stdout)

    options = settings.options
    logger.debug(f"Options: {options.model_dump(mode='json')}")

    try:
        result = run_filter(args.file, options, stdin, stdout)
    except TargetFileError as e:
        logger.error(str(e))
        return EXIT_IO_ERROR

    if result.target is not None:
        logger.info(
            f"{len(result.new_lines)} new lines, "
            f"{len(result.seen)} unique lines in {result.target.path}"
        )
    return EXIT_OK


def main():
    """Console entry point."""
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        sys.exit(EXIT_INTERRUPTED)
    except BrokenPipeError:
        # Reader went away (e.g. `anew file | head`); silence the flush at exit
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        sys.exit(EXIT_IO_ERROR)


if __name__ == "__main__":
    main()
