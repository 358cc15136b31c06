#!/usr/bin/env python3
"""
Ask a question about an ingested exam paper.

Usage examples:
  python ask.py -d phys_2023_p1 -q "Explain question 3"
  python ask.py -d phys_2023_p1 -q "How do I do Q2a?" --provider openai --no-optimize
"""

import argparse
import sys
from pathlib import Path

from examtutor.answering import AnswerRequest
from examtutor.api.deps import build_services
from examtutor.config import ServiceSettings
from examtutor.exceptions import ExamTutorError


def main():
    """Parse arguments, answer the question and print the result."""
    parser = argparse.ArgumentParser(
        description="Answer a student's question about an ingested paper."
    )
    parser.add_argument(
        "-d",
        "--document-id",
        type=str,
        required=True,
        help="Identifier of the ingested exam paper.",
    )
    parser.add_argument(
        "-q",
        "--query",
        type=str,
        required=True,
        help="The student's question, e.g. 'Explain question 3'.",
    )
    parser.add_argument(
        "-k",
        "--answer-key-id",
        type=str,
        default=None,
        help="Marking scheme document (defaults to the linked one).",
    )
    parser.add_argument(
        "--no-optimize",
        action="store_true",
        help="Send every page instead of the matching question image.",
    )
    parser.add_argument(
        "--provider",
        type=str,
        default=None,
        help="Completion backend key (e.g. 'gemini', 'openai', 'claude', 'qwen').",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Data directory (defaults to EXAMTUTOR_DATA_DIR or ./data).",
    )
    args = parser.parse_args()

    service_settings = ServiceSettings(ocr_engine="none")
    if args.root is not None:
        service_settings = service_settings.model_copy(update={"data_dir": args.root})

    try:
        services = build_services(service_settings=service_settings)
        result = services.orchestrator.answer(
            AnswerRequest(
                query=args.query,
                document_id=args.document_id,
                answer_key_document_id=args.answer_key_id,
                optimized_mode=not args.no_optimize,
                provider=args.provider,
            )
        )
    except ExamTutorError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        sys.exit(1)

    where = f"question {result.question_number}" if result.question_number else "full paper"
    print(
        f"[{result.provider}/{result.model}] {result.mode.value} mode, {where}, "
        f"{result.images_used} image(s)\n"
    )
    print(result.answer)


if __name__ == "__main__":
    main()
