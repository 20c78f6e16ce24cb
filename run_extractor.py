# run_extractor.py
"""
Command-line front end: read an HTML file (or stdin), print the article.

    python run_extractor.py page.html --url https://example.com/post
    curl -s https://example.com/post | python run_extractor.py - --format markdown
"""
import argparse
import json
import sys
from pathlib import Path

# Make the repo root importable
repo_root = Path(__file__).resolve().parent
if str(repo_root) not in sys.path:
    sys.path.append(str(repo_root))

from loguru import logger

from core.config import get_settings, load_settings
from core.exceptions import ExtractorException
from core.logging import configure_logging
from services.extractor import extract_from_html


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract the readable article from an HTML page.")
    parser.add_argument("source", help="Path to an HTML file, or '-' to read stdin")
    parser.add_argument("--url", help="URL the page was fetched from (base for relative links)")
    parser.add_argument(
        "--format",
        choices=["json", "markdown", "html"],
        default="json",
        help="Output format (default: json)",
    )
    parser.add_argument("--char-threshold", type=int, help="Override the minimum article length")
    parser.add_argument("--config", type=Path, help="Alternative extractor.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log heuristic decisions to stderr")
    return parser


def read_source(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8", errors="replace")


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    settings = load_settings(args.config) if args.config else get_settings()
    configure_logging("DEBUG" if args.verbose else settings.logging.level)

    updates = {"serializer": "markdown" if args.format == "markdown" else None}
    if args.char_threshold is not None:
        updates["char_threshold"] = args.char_threshold
    options = settings.extractor.model_copy(update=updates)

    try:
        article = extract_from_html(read_source(args.source), url=args.url, options=options)
    except ExtractorException as exc:
        logger.error(f"Extraction aborted: {exc}")
        return 2

    if article is None:
        logger.warning("No readable content found")
        return 1

    if args.format == "json":
        print(json.dumps(article.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(article.content)
    return 0


if __name__ == "__main__":
    sys.exit(main())
