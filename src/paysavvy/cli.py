"""CLI entry point for PaySavvy."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import timedelta

import yaml

from paysavvy import __version__
from paysavvy.analyzers.ai_verdict import build_ai_prompt, parse_ai_response
from paysavvy.analyzers.heuristics import HeuristicAnalyzer
from paysavvy.analyzers.redirects import RedirectChainAnalyzer
from paysavvy.brands import DatasetError, build_index, load_dataset
from paysavvy.config import load_config
from paysavvy.history import JsonFileScanHistory
from paysavvy.output import console, render_assessment
from paysavvy.scanner import assess_many, assess_risk

logger = logging.getLogger("paysavvy")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paysavvy",
        description="PaySavvy - check payment and banking links for scam indicators",
    )
    parser.add_argument("urls", metavar="URL", nargs="+", help="One or more URLs to check")
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to config YAML file merged over the bundled defaults",
    )
    parser.add_argument(
        "--brands",
        default=None,
        help="Path to a brand dataset (YAML or JSON); defaults to the bundled registry",
    )
    parser.add_argument(
        "--redirect",
        action="append",
        default=[],
        metavar="HOP_URL",
        help="A resolved redirect hop for the (single) URL; repeat in chain order",
    )
    parser.add_argument(
        "--ai-verdict",
        default=None,
        metavar="JSON",
        help='AI classifier verdict, e.g. \'{"risk": "Dangerous", "confidence": 0.9}\'',
    )
    parser.add_argument(
        "--ai-prompt",
        action="store_true",
        help="Print the AI classifier prompt for the (single) URL instead of scoring it",
    )
    parser.add_argument(
        "--history",
        default=None,
        metavar="PATH",
        help="Record assessments in this JSON history file",
    )
    parser.add_argument("--json", action="store_true", help="Print assessments as JSON")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show per-layer flags and debug logging",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse CLI arguments and assess each URL."""
    args = _build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    level = "DEBUG" if args.verbose else str(config.get("logging", {}).get("level", "WARNING"))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        index = build_index(load_dataset(args.brands or config.get("brands_path") or None))
    except DatasetError as e:
        print(f"Error loading brand dataset: {e}", file=sys.stderr)
        return 1

    if args.no_color:
        console.no_color = True

    if len(args.urls) > 1 and (args.redirect or args.ai_verdict or args.ai_prompt):
        print("--redirect, --ai-verdict and --ai-prompt apply to a single URL only", file=sys.stderr)
        return 2

    if args.ai_prompt:
        url = args.urls[0]
        print(build_ai_prompt(
            url,
            index,
            heuristics=HeuristicAnalyzer(config).evaluate(url),
            redirects=RedirectChainAnalyzer(config).analyze(args.redirect, index),
            redirect_chain=args.redirect,
        ))
        return 0

    if len(args.urls) == 1:
        verdict = parse_ai_response(args.ai_verdict) if args.ai_verdict else None
        if args.ai_verdict and verdict is None:
            logger.warning("Ignoring unusable --ai-verdict value")
        assessments = [
            assess_risk(args.urls[0], index, args.redirect, verdict, config=config)
        ]
    else:
        max_workers = int(config.get("batch", {}).get("max_workers", 8))
        assessments = assess_many(args.urls, index, max_workers=max_workers, config=config)

    history_path = args.history or config.get("history", {}).get("path")
    if history_path:
        ttl_days = int(config.get("history", {}).get("ttl_days", 30))
        history = JsonFileScanHistory(history_path, ttl=timedelta(days=ttl_days))
        for assessment in assessments:
            history.record(assessment)

    if args.json:
        payload = [a.to_dict() for a in assessments]
        print(json.dumps(payload[0] if len(payload) == 1 else payload, indent=2, default=str))
    else:
        for assessment in assessments:
            render_assessment(assessment, verbose=args.verbose)

    return 0


if __name__ == "__main__":
    sys.exit(main())
