"""Command-line front door for cacheview.

Parses the global cache options and one subcommand, opens the disk cache,
and prints listings, reports or replay instructions to stdout.
"""

from __future__ import annotations

import argparse
import logging
import sys
import tempfile
from pathlib import Path

from . import config
from .disk_cache import DiskCache
from .errors import CacheViewError, LocalWriteError
from .highlight import available_style_names, highlight_shell, use_color
from .remote_model.codec import decode_action, decode_action_result, decode_output_directory, load_file, loads
from .remote_model.types import Digest, OutputDirectory
from .replay import setup_replay
from .report import ReportPresenter


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _digest(value: str) -> Digest:
    """argparse type for ``<hash>/<size>`` digests."""
    try:
        return Digest.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cacheview",
        description="Inspect and replay build actions stored in a content-addressed remote cache.",
    )
    parser.add_argument("--cache-dir", type=Path, default=None, help="Cache directory (default: from config).")
    parser.add_argument(
        "--style",
        default=None,
        help=f"Pygments style for command lines ({', '.join(available_style_names()[:5])}, ...).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log cache access to stderr.")
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True
    limit = config.load_default_limit()

    ls = commands.add_parser("ls", help="List a directory tree by root digest.")
    ls.add_argument("--digest", type=_digest, required=True)
    ls.add_argument("--limit", type=_positive_int, default=limit)

    lsoutdir = commands.add_parser("lsoutdir", help="List an OutputDirectory blob.")
    lsoutdir.add_argument("--digest", type=_digest, required=True)
    lsoutdir.add_argument("--limit", type=_positive_int, default=limit)

    getdir = commands.add_parser("getdir", help="Download a directory tree to a local path.")
    getdir.add_argument("--digest", type=_digest, required=True)
    getdir.add_argument("--path", type=Path, required=True)

    getoutdir = commands.add_parser("getoutdir", help="Download an OutputDirectory to a local path.")
    getoutdir.add_argument("--digest", type=_digest, required=True)
    getoutdir.add_argument("--path", type=Path, required=True)

    cat = commands.add_parser("cat", help="Write a blob to stdout or a file.")
    cat.add_argument("--digest", type=_digest, required=True)
    cat.add_argument("--file", type=Path, default=None)

    show_action = commands.add_parser("show_action", aliases=["sa"], help="Describe an Action JSON file.")
    show_action.add_argument("--file", type=Path, required=True)
    show_action.add_argument("--limit", type=_positive_int, default=limit)

    show_result = commands.add_parser(
        "show_action_result", aliases=["sar"], help="Describe an ActionResult JSON file."
    )
    show_result.add_argument("--file", type=Path, required=True)
    show_result.add_argument("--limit", type=_positive_int, default=limit)
    show_result.add_argument("--show-raw-outputs", action="store_true", help="Print inline output file contents.")

    run = commands.add_parser("run", help="Set up an Action locally and print how to rerun it.")
    run.add_argument("--file", type=Path, required=True)
    run.add_argument("--path", type=Path, default=None, help="Replay directory (default: new temp dir).")
    return parser


def _fetch_output_directory(cache: DiskCache, digest: Digest) -> OutputDirectory:
    return loads(cache.fetch_blob(digest), decode_output_directory, "OutputDirectory")


def _cat(cache: DiskCache, digest: Digest, target: Path | None) -> None:
    data = cache.fetch_blob(digest)
    if target is not None:
        try:
            target.write_bytes(data)
        except OSError as exc:
            raise LocalWriteError(target, f"blob {digest} to", exc) from exc
        return
    sys.stdout.flush()
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


def _run(cache: DiskCache, args: argparse.Namespace) -> str:
    action = load_file(args.file, decode_action, "Action")
    root = args.path if args.path is not None else Path(tempfile.mkdtemp(prefix="cacheview-"))
    sys.stdout.write(f"Setting up Action in directory {root.resolve()}...\n")
    plan = setup_replay(cache, action, root)
    command_line = plan.command_line
    if use_color(sys.stdout, args.no_color):
        command_line = highlight_shell(command_line, args.style or config.load_style())
    out = [f"\nSuccessfully setup Action in directory {plan.root}.\n"]
    if not plan.containerized:
        out.append("\nNo container image specified; the Action will run without a container.\n")
    out.append("\nTo run the Action locally, run:\n")
    out.append(f"  {command_line}\n")
    return "".join(out)


def dispatch(args: argparse.Namespace) -> str:
    """Execute the parsed subcommand and return its text output."""
    cache_dir = args.cache_dir if args.cache_dir is not None else config.load_cache_dir()
    cache = DiskCache(cache_dir)
    presenter = ReportPresenter(cache)
    command = args.command

    if command == "ls":
        return presenter.list_tree_digest(args.digest, args.limit)
    if command == "lsoutdir":
        return presenter.list_output_directory(_fetch_output_directory(cache, args.digest), args.limit)
    if command == "getdir":
        cache.materialize_directory(args.path, args.digest)
        return ""
    if command == "getoutdir":
        cache.materialize_output_directory(_fetch_output_directory(cache, args.digest), args.path)
        return ""
    if command == "cat":
        _cat(cache, args.digest, args.file)
        return ""
    if command in {"show_action", "sa"}:
        action = load_file(args.file, decode_action, "Action")
        return presenter.render_action(action, args.limit)
    if command in {"show_action_result", "sar"}:
        result = load_file(args.file, decode_action_result, "ActionResult")
        return presenter.render_action_result(result, args.limit, args.show_raw_outputs)
    if command == "run":
        return _run(cache, args)
    raise SystemExit(f"Unknown command: {command}")


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run one cacheview subcommand.

    Errors raised by the cache or by malformed inputs are reported as
    ``Error: ...`` and exit with status 1.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        output = dispatch(args)
    except (CacheViewError, ValueError) as exc:
        raise SystemExit(f"Error: {exc}") from exc
    sys.stdout.write(output)


__all__ = ["build_parser", "dispatch", "main"]


if __name__ == "__main__":
    main()
