"""
examtutor API – stored question listing.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from examtutor.exceptions import StorageError

from .deps import Services, get_services
from .schemas import QuestionSummary

router = APIRouter(prefix="/questions", tags=["questions"])


class QuestionListResponse(BaseModel):
    """
    Response model for `/questions/{document_id}`.

    Attributes:
        document_id: The document.
        answer_key_document_id: Linked marking scheme, if any.
        questions: Stored questions in page order.
    """

    document_id: str
    answer_key_document_id: str | None = None
    questions: list[QuestionSummary]


@router.get("/{document_id}", response_model=QuestionListResponse)
def list_questions(
    document_id: str, services: Services = Depends(get_services)
) -> QuestionListResponse:
    try:
        records = services.store.list_questions(document_id)
        answer_key = services.store.get_answer_key(document_id)
    except StorageError as exc:
        raise HTTPException(status_code=502, detail="Question store unavailable") from exc
    if not records:
        raise HTTPException(status_code=404, detail="Unknown document_id")
    return QuestionListResponse(
        document_id=document_id,
        answer_key_document_id=answer_key,
        questions=[QuestionSummary.from_record(r) for r in records],
    )
