from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple

from . import __version__
from .contracts.v1 import PlanConfig
from .editor import open_editor
from .kernel.dates import get_date, parse_plan_filename, parse_relative_date, plan_path, short_weekday
from .kernel.errors import PlanError, PlanNotFoundError, SilentExit, UsageError
from .kernel.inbox import insert_line, split_lines
from .kernel.scan import dated_plans, find_latest, scan_plan_dir, warn_unexpected_files
from .kernel.settings import init_config, load_config
from .kernel.template import ensure_plan_file
from .paths import expand_tilde
from .util.file_lock import acquire_exclusive, acquire_shared
from .util.fs import read_text
from .util.obslog import setup_root_json_logging

logger = logging.getLogger("plan.cli")

COMMANDS = ("open", "log", "jot", "ls", "show", "search", "version")
LS_LIMIT = 30


@dataclass
class _Run:
    cfg: PlanConfig
    plan_files: List[Path] = field(default_factory=list)
    latest: Optional[Path] = None


def _read_stdin_line() -> str:
    # Bytes, like plan files: stray non-UTF-8 input is kept, not fatal.
    return sys.stdin.buffer.readline().decode("utf-8", "surrogateescape")


def _prompt(text: str) -> str:
    sys.stdout.write(text)
    sys.stdout.flush()
    line = _read_stdin_line()
    if not line:
        raise EOFError
    return line


def _message_text(raw: str) -> str:
    text = _read_stdin_line().strip() if raw == "-" else raw.strip()
    if not text:
        raise UsageError("Message cannot be empty.")
    return text


def _ensure_dir(d: Path) -> None:
    if not d.exists():
        try:
            d.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PlanError(f"Error creating directory {d}: {e}") from e


def _prepare(args: argparse.Namespace) -> _Run:
    cfg = load_config(prompt=_prompt)
    if args.dir:
        cfg.dir = expand_tilde(args.dir)
        _ensure_dir(cfg.dir)

    if args.print_path and args.cmd != "open":
        raise UsageError("--path can only be used with the default command.")

    run = _Run(cfg=cfg)
    # One scan per run: warns once and feeds ls, search and --last.
    if cfg.dir.exists():
        scan = scan_plan_dir(cfg.dir, cfg.scan.ignored_patterns)
        if cfg.scan.warn_unexpected:
            warn_unexpected_files(scan.unexpected)
        run.plan_files = scan.plan_files
    run.latest = find_latest(run.plan_files)
    return run


def _resolve_target(run: _Run, args: argparse.Namespace) -> Tuple[Path, Optional[date], int]:
    """(path, date, days_ago) for the command; date is None under --last."""
    date_arg = getattr(args, "date", None)
    if args.last:
        if date_arg is not None:
            raise UsageError("Cannot use --last with a specific date.")
        if run.latest is None:
            raise PlanError(f"No plan files found in {run.cfg.dir}")
        return run.latest, None, 0
    days_ago = parse_relative_date(date_arg)
    day = get_date(days_ago)
    return plan_path(run.cfg.dir, day), day, days_ago


def _reject_last(args: argparse.Namespace) -> None:
    if args.last:
        raise UsageError(f"--last is not supported with the '{args.cmd}' command.")


def cmd_open(args: argparse.Namespace) -> int:
    run = _prepare(args)
    path, day, days_ago = _resolve_target(run, args)
    if day is not None:
        _ensure_dir(run.cfg.dir)
        with acquire_exclusive(path):
            if ensure_plan_file(path, day, is_past=days_ago > 0):
                logger.debug("created plan from template", extra={"op": "open", "path": path, "date": day})
    if args.print_path:
        print(path)
    else:
        open_editor(path)
    return 0


def _cmd_insert(args: argparse.Namespace, *, task: bool) -> int:
    # Config first: a first-run prompt takes the first stdin line.
    run = _prepare(args)
    text = _message_text(args.text)
    path, day, days_ago = _resolve_target(run, args)
    if day is not None:
        _ensure_dir(run.cfg.dir)
    line = f"* {text}" if task else text
    with acquire_exclusive(path) as lock:
        if day is not None and ensure_plan_file(path, day, is_past=days_ago > 0):
            logger.debug("created plan from template", extra={"op": args.cmd, "path": path, "date": day})
        insert_line(path, line, lock)
    logger.debug("inserted into inbox", extra={"op": args.cmd, "path": path, "date": day})
    return 0


def cmd_log(args: argparse.Namespace) -> int:
    return _cmd_insert(args, task=True)


def cmd_jot(args: argparse.Namespace) -> int:
    return _cmd_insert(args, task=False)


def cmd_ls(args: argparse.Namespace) -> int:
    _reject_last(args)
    run = _prepare(args)
    for path in dated_plans(run.plan_files)[:LS_LIMIT]:
        day = parse_plan_filename(path.name)
        if day is None:
            continue
        count = len(split_lines(read_text(path)))
        print(f"{day.isoformat()}  {short_weekday(day)}  {count:>2} lines")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    run = _prepare(args)
    path, _day, _days_ago = _resolve_target(run, args)
    if not path.exists():
        raise SilentExit(2)
    with acquire_shared(path):
        content = read_text(path)
    sys.stdout.write(content)
    sys.stdout.flush()
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    _reject_last(args)
    run = _prepare(args)
    needle = args.query.lower()
    for path in sorted(run.plan_files, key=lambda p: p.name, reverse=True):
        try:
            content = read_text(path)
        except OSError as e:
            logger.debug("skip unreadable plan: %s", e, extra={"op": "search", "path": path})
            continue
        for i, line in enumerate(split_lines(content), start=1):
            if line.endswith("\r"):
                line = line[:-1]
            if needle in line.lower():
                print(f"{path.name}:{i}: {line}")
    return 0


def cmd_version(_: argparse.Namespace) -> int:
    print(f"plan {__version__}")
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    if not args.dir:
        raise UsageError("--init requires --dir=<path>")
    _ensure_dir(expand_tilde(args.dir))
    init_config(args.dir)
    print(f"Configured plan directory: {args.dir}")
    return 0


def _add_shared_options(p: argparse.ArgumentParser, *, top: bool) -> None:
    # Subcommands repeat these with SUPPRESS defaults so `plan log x --last`
    # works without clobbering values given before the command.
    kw = {} if top else {"default": argparse.SUPPRESS}
    p.add_argument("--dir", metavar="DIR", help="Override config with a new directory", **kw)
    p.add_argument("--path", dest="print_path", action="store_true", help="Print the resolved file path (creates template if needed)", **kw)
    p.add_argument("--last", action="store_true", help="Use the most recent plan file", **kw)


def build_parser() -> argparse.ArgumentParser:
    date_help = 'Relative date: @, @~N, today, yesterday, "N days ago"'

    p = argparse.ArgumentParser(prog="plan", description="A standalone tool for writing and managing daily plan files.")
    p.add_argument("--version", action="version", version=f"plan {__version__}")
    p.add_argument("--init", action="store_true", help="Save --dir as the configured plan directory")
    _add_shared_options(p, top=True)
    sub = p.add_subparsers(dest="cmd", required=True)

    p_open = sub.add_parser("open", help="Open a plan file in $VISUAL/$EDITOR (default command)")
    p_open.add_argument("date", nargs="?", default=None, metavar="DATE", help=date_help)
    _add_shared_options(p_open, top=False)
    p_open.set_defaults(func=cmd_open)

    p_log = sub.add_parser("log", help="Insert '* <text>' into the inbox (reads stdin if '-')")
    p_log.add_argument("text", help="Task text")
    p_log.add_argument("date", nargs="?", default=None, metavar="DATE", help=date_help)
    _add_shared_options(p_log, top=False)
    p_log.set_defaults(func=cmd_log)

    p_jot = sub.add_parser("jot", help="Insert a raw note into the inbox (reads stdin if '-')")
    p_jot.add_argument("text", help="Note text")
    p_jot.add_argument("date", nargs="?", default=None, metavar="DATE", help=date_help)
    _add_shared_options(p_jot, top=False)
    p_jot.set_defaults(func=cmd_jot)

    p_ls = sub.add_parser("ls", help="List recent plan files with dates and line counts")
    _add_shared_options(p_ls, top=False)
    p_ls.set_defaults(func=cmd_ls)

    p_show = sub.add_parser("show", help="Print a plan file to stdout (exit code 2 if not found)")
    p_show.add_argument("date", nargs="?", default=None, metavar="DATE", help=date_help)
    _add_shared_options(p_show, top=False)
    p_show.set_defaults(func=cmd_show)

    p_search = sub.add_parser("search", help="Search across all plan files (substring match, case-insensitive)")
    p_search.add_argument("query", help="The search query")
    _add_shared_options(p_search, top=False)
    p_search.set_defaults(func=cmd_search)

    p_ver = sub.add_parser("version", help="Show version")
    p_ver.set_defaults(func=cmd_version)

    return p


def _with_default_command(argv: List[str]) -> List[str]:
    """Insert `open` unless a command is named (`plan @~1` == `plan open @~1`)."""
    i = 0
    while i < len(argv):
        tok = argv[i]
        if tok == "--":
            break
        if tok in ("-h", "--help", "--version"):
            return argv
        if tok == "--dir":
            if i + 1 >= len(argv):
                # Leave the missing value for argparse to report.
                return argv
            i += 2
            continue
        if tok.startswith("-") and tok != "-":
            i += 1
            continue
        if tok in COMMANDS:
            return argv
        break
    return argv[:i] + ["open"] + argv[i:]


def _report(exc: PlanError) -> int:
    if isinstance(exc, SilentExit):
        return exc.code
    if isinstance(exc, PlanNotFoundError):
        print(f"plan: No plan file for that date: {exc.path.name}", file=sys.stderr)
        return 2
    if isinstance(exc, UsageError):
        print(f"plan: {exc}", file=sys.stderr)
        return 2
    print(f"Error: {exc}", file=sys.stderr)
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    setup_root_json_logging(component="plan", level=os.environ.get("PLAN_LOG_LEVEL", "WARNING"))
    raw = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    args = parser.parse_args(_with_default_command(raw))
    try:
        if args.init:
            return cmd_init(args)
        return int(args.func(args))
    except PlanError as e:
        return _report(e)
    except OSError as e:
        logger.debug("command failed", exc_info=True, extra={"op": args.cmd})
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
