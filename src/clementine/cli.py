from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import NoReturn

from clementine import __version__
from clementine.commands import Runtime, run_init, run_queues
from clementine.console import Logger, logger as default_logger
from clementine.detect import detect_project_context
from clementine.errors import ClementineError, FlowError
from clementine.primitives import build_default_registry
from clementine.primitives.registry import PrimitiveRegistry
from clementine.prompting import Prompter, RichPrompter
from clementine.settings import SettingsError, load_settings
from clementine.toolchain import SubprocessToolchain, Toolchain

PROG = "clementine"

HELP_TEXT = """
🍊 Clementine - Instant Cloudflare Workers primitives

Usage:
  clementine [command] [options]
  clem [command] [options]

Commands:
  (none)          Interactive mode - choose what to create/add
  queues          Add Workers Queues to your project

Options:
  -a, --add       Force add to existing project
  -n, --new       Force create new project
  -h, --help      Show this help message
  -v, --version   Show version

Examples:
  clementine              # Interactive mode - choose Worker or Queues
  clementine queues       # Add Queues directly
  clementine --new        # Force create new project (shows options)
  clementine --add        # Force add to existing project (shows options)

  clem                    # Short alias works too!
"""


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise ClementineError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog=PROG, add_help=False)
    parser.add_argument("command", nargs="?", help="Optional command (default: interactive mode).")
    parser.add_argument("-a", "--add", action="store_true", help="Force add to existing project.")
    parser.add_argument("-n", "--new", action="store_true", help="Force create new project.")
    parser.add_argument("-h", "--help", action="store_true", help="Show this help message.")
    parser.add_argument("-v", "--version", action="store_true", help="Show version.")
    return parser


def _dispatch(args: argparse.Namespace, runtime: Runtime, *, cwd: Path | None) -> int:
    context = detect_project_context(cwd)
    if args.command is None:
        return run_init(runtime, context, force_new=args.new, force_add=args.add)
    return run_queues(runtime, context, force_new=args.new, force_add=args.add)


def main(
    argv: list[str] | None = None,
    *,
    registry: PrimitiveRegistry | None = None,
    prompter: Prompter | None = None,
    toolchain: Toolchain | None = None,
    cwd: Path | None = None,
    log: Logger | None = None,
) -> int:
    log = log or default_logger
    try:
        args = build_parser().parse_args(argv)
    except ClementineError as e:
        log.error(str(e))
        log.info(f'Run "{PROG} --help" for usage')
        return 1

    if args.help:
        sys.stdout.write(HELP_TEXT)
        return 0
    if args.version:
        print(f"clementine-cli v{__version__}")
        return 0

    log.intro("🍊 Clementine")

    if args.command not in (None, "queues"):
        log.error(f"Unknown command: {args.command}")
        log.info(f'Run "{PROG} --help" for usage')
        return 1

    try:
        settings = load_settings(cwd)
        runtime = Runtime(
            registry=registry if registry is not None else build_default_registry(settings=settings, log=log),
            prompter=prompter if prompter is not None else RichPrompter(),
            toolchain=toolchain if toolchain is not None else SubprocessToolchain(settings),
            settings=settings,
            log=log,
        )
        return _dispatch(args, runtime, cwd=cwd)
    except KeyboardInterrupt:
        log.plain()
        log.info("Setup cancelled")
        return 0
    except FlowError as e:
        log.error(str(e))
        if e.hint:
            log.info(e.hint)
        return 1
    except (ClementineError, SettingsError) as e:
        log.error(str(e))
        return 1
    except Exception as e:
        log.error(f"An unexpected error occurred: {type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
