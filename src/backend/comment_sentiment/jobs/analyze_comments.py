"""Comment Sentiment Job

Classifies a file of comments and prints the breakdown as JSON.

Input is either a JSON array of strings (or of objects with a ``text``
field) or plain text with one comment per line. ``-`` reads stdin.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from comment_sentiment.core.config import COMPREHEND_BATCH_LIMIT, get_settings
from comment_sentiment.core.logging import configure_logging
from comment_sentiment.services.sentiment_analyzer import build_sentiment_analyzer

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_BAD_INPUT = 2


def load_comments(raw: str) -> list[str]:
    """Parse job input into a list of comment texts.

    Input that does not decode as a JSON array is read line by line, so a
    plain comment such as ``[Spoiler] great ending`` is not mistaken for JSON.
    """
    stripped = raw.strip()
    payload: Any = None
    if stripped.startswith("["):
        try:
            payload = json.loads(stripped)
        except json.JSONDecodeError:
            logger.debug("Input is not a JSON array; reading one comment per line")
    if isinstance(payload, list):
        comments: list[str] = []
        for entry in payload:
            if isinstance(entry, str):
                comments.append(entry)
            elif isinstance(entry, dict) and "text" in entry:
                comments.append(str(entry["text"]))
            else:
                raise ValueError(f"Unsupported comment entry: {entry!r}")
        return comments
    return [line for line in raw.splitlines() if line.strip()]


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Classify comment sentiment with AWS Comprehend")
    parser.add_argument("input", help="Path to a JSON array or newline-delimited comment file ('-' for stdin)")
    parser.add_argument("--output", "-o", help="Write the JSON result here instead of stdout")
    parser.add_argument("--analysis-id", help="Identifier attached to log lines for this run")
    parser.add_argument(
        "--batch-size",
        type=int,
        choices=range(1, COMPREHEND_BATCH_LIMIT + 1),
        metavar=f"[1-{COMPREHEND_BATCH_LIMIT}]",
        help="Comments per Comprehend request",
    )
    parser.add_argument("--language", help="Language code passed to Comprehend (default from settings)")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)

    overrides: dict[str, Any] = {}
    if args.batch_size:
        overrides["sentiment_batch_size"] = args.batch_size
    if args.language:
        overrides["comprehend_language_code"] = args.language.strip().lower()
    settings = get_settings().model_copy(update=overrides)
    configure_logging(settings)

    try:
        comments = load_comments(_read_input(args.input))
    except (OSError, ValueError) as exc:
        logger.error("Unable to read comments from %s: %s", args.input, exc)
        return EXIT_BAD_INPUT

    analyzer = build_sentiment_analyzer(settings)
    result = analyzer.analyze_comments(comments, analysis_id=args.analysis_id)
    rendered = json.dumps(result.to_dict(), ensure_ascii=False, indent=2)

    if args.output:
        Path(args.output).write_text(rendered + "\n", encoding="utf-8")
        logger.info("Wrote analysis for %d comments to %s", len(comments), args.output)
    else:
        sys.stdout.write(rendered + "\n")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
