"""
examtutor API – ingestion endpoint.

Uploads an exam paper (or a marking scheme) as a PDF, segments it into
questions and stores the result.
"""

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from pydantic import BaseModel

from examtutor.exceptions import IngestionError
from examtutor.schema import IngestionStage
from examtutor.utils import get_logger

from .deps import Services, get_services
from .schemas import ErrorDetail, QuestionSummary

router = APIRouter(prefix="/ingest", tags=["ingestion"])
logger = get_logger("api")

# Failures caused by the uploaded document rather than a collaborator.
_CLIENT_STAGES = {IngestionStage.RASTERIZATION, IngestionStage.DETECTION}


class IngestResponse(BaseModel):
    """
    Response model for the `/ingest` endpoint.

    Attributes:
        document_id: Identifier the document was stored under.
        page_count: Number of rendered pages.
        questions_count: Number of questions written.
        questions: Written questions in page order.
        failures: Error message per question that was not written.
        answer_key_for: Exam this document was linked to as a marking scheme.
    """

    document_id: str
    page_count: int
    questions_count: int
    questions: list[QuestionSummary]
    failures: dict[str, str]
    answer_key_for: str | None = None


@router.post("/", response_model=IngestResponse, status_code=201)
@router.post("", response_model=IngestResponse, status_code=201)
def ingest_document(
    file: UploadFile = File(..., description="PDF to ingest"),
    document_id: str = Query(..., min_length=1, description="Identifier for the document"),
    answer_key_for: str | None = Query(
        None, description="Exam document this PDF is the marking scheme for"
    ),
    services: Services = Depends(get_services),
) -> IngestResponse:
    """
    Ingest a PDF: rasterize, detect questions, compose images and store records.

    Raises:
        HTTPException: 415 if the upload is not a PDF, 422 if the document could
            not be rendered or segmented, 502 if a downstream service failed.
    """
    if file.content_type != "application/pdf":
        raise HTTPException(status_code=415, detail="File must be a PDF")

    document_bytes = file.file.read()
    try:
        report = services.pipeline.ingest_pdf(document_id, document_bytes)
        if answer_key_for:
            services.pipeline.link_answer_key(answer_key_for, document_id)
    except IngestionError as exc:
        logger.error(f"Ingestion of {document_id} failed: {exc}")
        status = 422 if exc.stage in _CLIENT_STAGES else 502
        raise HTTPException(
            status_code=status,
            detail=ErrorDetail(
                message=f"Could not process the document at the {exc.stage.value} stage",
                stage=exc.stage.value,
                succeeded=exc.succeeded,
            ).model_dump(),
        ) from exc

    logger.info(
        f"Ingested {document_id}: {report.succeeded} question(s) from {report.page_count} page(s)"
    )
    return IngestResponse(
        document_id=document_id,
        page_count=report.page_count,
        questions_count=report.succeeded,
        questions=[QuestionSummary.from_record(r) for r in report.questions],
        failures=report.failures,
        answer_key_for=answer_key_for,
    )
