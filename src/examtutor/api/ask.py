"""
examtutor API – answering endpoint.

Resolves the student's question to a stored question image when possible,
otherwise sends the whole paper, and returns the tutor answer.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from examtutor.answering import AnswerRequest
from examtutor.exceptions import ExamTutorError, NoContentAvailableError
from examtutor.schema import AnswerMode
from examtutor.utils import get_logger

from .deps import Services, get_services

router = APIRouter(prefix="/ask", tags=["answering"])
logger = get_logger("api")

RETRY_MESSAGE = "Could not generate an answer right now. Please try again."
PROCESSING_MESSAGE = "This paper is still being processed. Please try again shortly."


class AskRequest(BaseModel):
    """
    Payload for the `/ask` endpoint.

    Attributes:
        query: The student's question.
        document_id: Exam document ID from `/ingest`.
        answer_key_document_id: Marking scheme; the stored link is used if omitted.
        optimized_mode: Answer from a single question image when possible.
        provider: Completion backend key.
        question_number: Question label, if the caller already knows it.
    """

    query: str = Field(..., min_length=1, description="Student's question")
    document_id: str = Field(..., description="Exam document ID")
    answer_key_document_id: str | None = Field(None, description="Marking scheme ID")
    optimized_mode: bool = Field(True, description="Use per-question images")
    provider: str | None = Field(None, description="Completion backend key")
    question_number: str | None = Field(None, description="Known question label")


class AskResponse(BaseModel):
    """
    Response model for the `/ask` endpoint.

    Attributes:
        answer: Four-section tutor answer.
        model: Model that produced it.
        provider: Backend that produced it.
        optimized: Whether a single question image was used.
        question_number: Resolved question, if any.
        images_used: Number of images sent to the model.
    """

    answer: str
    model: str
    provider: str
    optimized: bool
    question_number: str | None = None
    images_used: int


@router.post("/", response_model=AskResponse)
@router.post("", response_model=AskResponse)
def ask(request: AskRequest, services: Services = Depends(get_services)) -> AskResponse:
    """
    Answer a student's question about an ingested paper.

    Raises:
        HTTPException: 400 for an unknown provider, 503 if the paper has no
            stored pages yet, 502 for any other failure.
    """
    try:
        result = services.orchestrator.answer(AnswerRequest(**request.model_dump()))
    except NoContentAvailableError as exc:
        logger.warning(f"No content for {request.document_id}: {exc}")
        raise HTTPException(status_code=503, detail=PROCESSING_MESSAGE) from exc
    except ExamTutorError as exc:
        logger.error(f"Answer for {request.document_id} failed: {exc!r}")
        raise HTTPException(status_code=502, detail=RETRY_MESSAGE) from exc
    except ValueError as exc:
        logger.error(f"Bad answer request for {request.document_id}: {exc}")
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return AskResponse(
        answer=result.answer,
        model=result.model,
        provider=result.provider,
        optimized=result.mode is AnswerMode.OPTIMIZED,
        question_number=result.question_number,
        images_used=result.images_used,
    )
