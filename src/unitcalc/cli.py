"""Command line interface.

Usage:
    unitcalc execute notes.calc
    unitcalc colorize notes.calc > notes.html
    cat notes.calc | unitcalc execute --rates rates.yaml
"""

import argparse
import logging
import sys
from pathlib import Path

from .catalog import UNITS, load_currency_rates
from .compiler import Compiler, CyclicDependencyError
from .config import ConfigError, apply_settings, load_settings
from .executor import Executor, execution_result
from .highlight import colorize_html
from .units import UnitError

logger = logging.getLogger(__name__)


def _read_source(path: Path | None) -> str:
    if path is None:
        return sys.stdin.read()
    return path.read_text(encoding="utf-8")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="unitcalc", description="Evaluate line-oriented calculations with units"
    )
    parser.add_argument("command", choices=["execute", "colorize"])
    parser.add_argument(
        "file", type=Path, nargs="?", default=None, help="Source file (stdin if omitted)"
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML settings file")
    parser.add_argument(
        "--rates", type=Path, default=None, help="YAML file of currency rates per euro"
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        apply_settings(settings)
        if args.rates is not None:
            UNITS.set_currency_rates(load_currency_rates(args.rates))
    except (OSError, UnitError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        source = _read_source(args.file)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    logger.debug("Read %d lines from %s", source.count("\n") + 1, args.file or "stdin")

    if args.command == "colorize":
        graph = Compiler(source).tokenize(allow_unknown=True)
        print(colorize_html(graph))
        return

    try:
        graph = Compiler(source).compile()
    except CyclicDependencyError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    Executor(graph).execute()
    print(execution_result(graph, settings))


if __name__ == "__main__":
    main()
