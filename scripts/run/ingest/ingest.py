#!/usr/bin/env python3
"""
Ingest an exam paper (and optionally its marking scheme) into the local stores.

Usage examples:
  python ingest.py -d phys_2023_p1 -p paper.pdf
  python ingest.py -d phys_2023_p1 -p paper.pdf -k scheme.pdf -c pipeline.yaml

Question images and page images are written under `<root>/objects`, question
records under `<root>/questions`. Provider keys are read from EXAMTUTOR_*
environment variables (or .env).
"""

import argparse
import sys
from pathlib import Path

from examtutor.api.deps import build_services
from examtutor.config import ServiceSettings
from examtutor.exceptions import ExamTutorError, IngestionError
from examtutor.ingestion import IngestionReport
from examtutor.schema import PipelineConfig


def print_report(report: IngestionReport) -> None:
    print(
        f"{report.document_id}: {report.succeeded} question(s) from "
        f"{report.page_count} page(s) in {report.elapsed_seconds:.1f}s"
    )
    for record in report.questions:
        pages = ", ".join(str(p) for p in record.page_numbers)
        print(f"  Q{record.question_number}  pages {pages}  -> {record.image_ref}")
    for label, message in report.failures.items():
        print(f"  [FAILED] Q{label}: {message}")


def main():
    """Parse arguments, build the local services and run ingestion."""
    parser = argparse.ArgumentParser(
        description="Segment an exam PDF into per-question images and records."
    )
    parser.add_argument(
        "-d",
        "--document-id",
        type=str,
        required=True,
        help="Identifier to store the exam paper under.",
    )
    parser.add_argument(
        "-p",
        "--paper",
        type=Path,
        required=True,
        help="Path to the exam paper PDF.",
    )
    parser.add_argument(
        "-k",
        "--answer-key",
        type=Path,
        default=None,
        help="Path to the marking scheme PDF (stored as '<document-id>_ms').",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="YAML file with pipeline settings.",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Data directory (defaults to EXAMTUTOR_DATA_DIR or ./data).",
    )
    args = parser.parse_args()

    service_settings = ServiceSettings()
    if args.root is not None:
        service_settings = service_settings.model_copy(update={"data_dir": args.root})
    config = PipelineConfig.from_yaml_path(args.config) if args.config else None

    try:
        services = build_services(
            service_settings=service_settings, pipeline_config=config
        )
        pipeline = services.pipeline
        if args.answer_key is None:
            print_report(pipeline.ingest_pdf(args.document_id, args.paper.read_bytes()))
        else:
            exam_report, key_report = pipeline.ingest_with_answer_key(
                args.document_id,
                args.paper.read_bytes(),
                f"{args.document_id}_ms",
                args.answer_key.read_bytes(),
            )
            print_report(exam_report)
            print_report(key_report)
    except IngestionError as exc:
        print(f"[ERROR] {exc} ({exc.succeeded} question(s) written)", file=sys.stderr)
        sys.exit(1)
    except ExamTutorError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
