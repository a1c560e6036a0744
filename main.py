#!/usr/bin/env python3

from typing import List, Optional, Sequence
import argparse
import dataclasses
import logging
import os

from jsmkdocs.builder import get_docs_trees
from jsmkdocs.cli import run, print_results
from jsmkdocs.config import load_config, validate_config
from jsmkdocs.models import Diagnostic
from jsmkdocs.writer import LAYOUTS, generate_docs

logger = logging.getLogger("jsmkdocs")

__version__ = "0.1.0"


def _csv(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jsmkdocs",
        description="Generate MkDocs sources from @docs-tagged JSDoc comments",
    )
    parser.add_argument("--config", "-c", default=".", help="Path to config file or directory (default: current directory)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-level",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"],
        help="Set logging level (overrides --verbose)."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-s", "--source", type=_csv, help="Comma-separated list of source files/directories to parse")
    parser.add_argument("-i", "--ignore", type=_csv, help="Comma-separated list of files/directories to ignore")
    parser.add_argument("-o", "--output", help="Directory to output the generated markdown files")
    parser.add_argument("-r", "--regex", help="Regex that files must match to be parsed")
    parser.add_argument("-g", "--pattern", help="Glob pattern to match files for parsing")
    parser.add_argument("--layout", choices=LAYOUTS, help="One file per section (default) or per page")
    parser.add_argument("--list", action="store_true", help="List directive comments instead of writing docs")
    parser.add_argument("--json", action="store_true", help="With --list, output comments as JSON")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # Configure logging early
    if args.log_level:
        level = getattr(logging, args.log_level)
    else:
        level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")

    try:
        cfg = load_config(args.config)
        overrides = {
            k: getattr(args, k)
            for k in ("source", "ignore", "output", "regex", "pattern", "layout")
            if getattr(args, k) is not None
        }
        # Paths given on the command line are relative to the working directory
        if "output" in overrides:
            overrides["output"] = os.path.abspath(overrides["output"])
        if "source" in overrides:
            overrides["source"] = [os.path.abspath(s) for s in overrides["source"]]
        cfg = validate_config(dataclasses.replace(cfg, **overrides))
        comments = run(cfg)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Configuration error: %s", e)
        return 2

    if args.list:
        print_results(comments, args.json, cfg.directive)
        return 0

    trees = get_docs_trees(comments, cfg.directive)
    if not trees:
        logger.info("No documented comments found. Nothing to do.")
        return 0

    diagnostics: List[Diagnostic] = []
    results = generate_docs(trees, cfg.output_path, cfg.layout, diagnostics)
    if diagnostics:
        logger.warning("%d malformed tag(s) were flagged in the output", len(diagnostics))
    for r in results:
        if r.ok:
            logger.info("\"%s\": %d file(s) written to %s", r.name, len(r.written), r.path)
        else:
            for e in r.errors:
                logger.error("\"%s\": %s", r.name, e)
    return 0 if all(r.ok for r in results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
