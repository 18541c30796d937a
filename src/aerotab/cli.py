"""Evaluate table functions of a DAVE-ML dataset from the command line."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from aerotab.babel import read_daveml
from aerotab.config import EngineSettings, load_settings
from aerotab.dataset import Dataset
from aerotab.errors import AerotabError

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _parse_assignment(text: str) -> tuple[str, float]:
    var_id, sep, value = text.partition("=")
    if not sep or not var_id.strip():
        raise argparse.ArgumentTypeError(f"expected ID=VALUE, got '{text}'")
    try:
        return var_id.strip(), float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"value of '{var_id}' is not a number: '{value}'") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aerotab-eval",
        description="Evaluate table functions of a DAVE-ML dataset",
    )
    parser.add_argument("dataset", type=Path, help="DAVE-ML file")
    parser.add_argument(
        "--set",
        dest="assignments",
        type=_parse_assignment,
        action="append",
        default=[],
        metavar="ID=VALUE",
        help="Set an input variable (repeatable)",
    )
    parser.add_argument(
        "--output",
        dest="outputs",
        action="append",
        default=[],
        metavar="ID",
        help="Variable to evaluate (repeatable; default: every function output)",
    )
    parser.add_argument("--settings", type=Path, default=None, help="Engine settings YAML")
    parser.add_argument("--strict", action="store_true", help="Fail on out-of-hull queries")
    parser.add_argument("--verbose", action="store_true")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    _setup_logging(args.verbose)

    if not args.dataset.exists():
        print(f"Dataset file not found: {args.dataset}")
        return 1

    try:
        settings = load_settings(args.settings) if args.settings else EngineSettings()
        dataset = Dataset.from_records(read_daveml(args.dataset), settings=settings)
        for var_id, value in args.assignments:
            dataset.set_value(var_id, value)

        outputs = args.outputs or [fn.dependent.var_id for fn in dataset.functions]
        logger.debug("Evaluating %d outputs", len(outputs))
        results = [
            (var_id, dataset.evaluate_variable(var_id, strict=args.strict or None))
            for var_id in outputs
        ]
    except (AerotabError, ValueError, FileNotFoundError) as exc:
        print(f"Error: {exc}")
        return 2

    for var_id, value in results:
        print(f"{var_id} = {value:.12g}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
