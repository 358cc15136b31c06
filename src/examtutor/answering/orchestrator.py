"""
Chooses the content for an answer (one question image or the whole paper),
assembles the prompt and delegates generation to the completion capability.
"""

import logging

from pydantic import BaseModel, Field

from examtutor.completion import CompletionClient
from examtutor.exceptions import NoContentAvailableError, StorageError
from examtutor.retrieval import QuestionResolver
from examtutor.schema import (
    AnswerMode,
    CompletionPart,
    CompletionRequest,
    GenerationPolicy,
    ResolvedContent,
)
from examtutor.storage import ObjectStorage
from examtutor.utils import get_logger

from .prompts import SYSTEM_PROMPT, build_user_prompt

__all__ = ["AnswerRequest", "AnswerResult", "AnswerOrchestrator"]


class AnswerRequest(BaseModel):
    """
    A student's question about one exam document.

    Attributes:
        query (str): Natural-language question.
        document_id (str): Exam document.
        answer_key_document_id (str | None): Marking scheme; the stored link is used if None.
        optimized_mode (bool): Allow answering from a single question image.
        provider (str | None): Completion backend key.
        question_number (str | None): Known question label, skips extraction from `query`.
    """

    query: str = Field(..., min_length=1)
    document_id: str
    answer_key_document_id: str | None = None
    optimized_mode: bool = True
    provider: str | None = None
    question_number: str | None = None


class AnswerResult(BaseModel):
    """
    A generated answer and how its content was selected.

    Attributes:
        answer (str): Model output.
        provider (str): Backend that produced it.
        model (str): Model name.
        mode (AnswerMode): Optimized or fallback.
        question_number (str | None): Resolved question, in optimized mode.
        images_used (int): Images sent to the model.
    """

    answer: str
    provider: str
    model: str
    mode: AnswerMode
    question_number: str | None = None
    images_used: int


class _Selection(BaseModel):
    mode: AnswerMode
    exam_images: list[bytes]
    scheme_images: list[bytes] = Field(default_factory=list)
    content: ResolvedContent | None = None


class AnswerOrchestrator:
    """
    Answers student questions in optimized or fallback mode.

    Optimized mode is used when the query resolves to a stored question and its
    image can be fetched. Otherwise every page image of the paper (and of the
    linked marking scheme) is sent.

    Attributes:
        client (CompletionClient): Completion capability.
        resolver (QuestionResolver): Query-to-question resolution.
        storage (ObjectStorage): Source of question and page images.
        policy (GenerationPolicy): Generation settings for answers.
    """

    def __init__(
        self,
        client: CompletionClient,
        resolver: QuestionResolver,
        storage: ObjectStorage,
        policy: GenerationPolicy | None = None,
        fetch_timeout: float = 30.0,
    ):
        self.client = client
        self.resolver = resolver
        self.storage = storage
        self.policy = policy or GenerationPolicy(temperature=0.7, max_output_tokens=2048)
        self.fetch_timeout = fetch_timeout
        self.logger = get_logger("answering", level=logging.DEBUG)

    @property
    def store(self):
        return self.resolver.store

    def answer(self, request: AnswerRequest) -> AnswerResult:
        """
        Generate an answer for a student's question.

        Raises:
            NoContentAvailableError: If fallback is needed and the paper has no page images.
            CompletionError: If the completion backend fails.
        """
        selection = None
        if request.optimized_mode:
            selection = self._select_optimized(request)
        if selection is None:
            selection = self._select_fallback(request)

        number = selection.content.question_number if selection.content else None
        parts = [
            CompletionPart.from_text(
                build_user_prompt(
                    request.query,
                    has_marking_scheme=bool(selection.scheme_images),
                    question_number=number,
                    question_text=selection.content.question_text if selection.content else None,
                )
            ),
            CompletionPart.from_text("EXAM PAPER:"),
            *[CompletionPart.from_image(image) for image in selection.exam_images],
        ]
        if selection.scheme_images:
            parts.append(CompletionPart.from_text("MARKING SCHEME (internal reference only):"))
            parts.extend(CompletionPart.from_image(image) for image in selection.scheme_images)

        images_used = len(selection.exam_images) + len(selection.scheme_images)
        self.logger.info(
            f"[{request.document_id}] {selection.mode.value} mode: sending {images_used} image(s)"
        )
        response = self.client.complete(
            CompletionRequest(parts=parts, system=SYSTEM_PROMPT, policy=self.policy),
            request.provider,
        )
        return AnswerResult(
            answer=response.text,
            provider=response.provider,
            model=response.model,
            mode=selection.mode,
            question_number=number,
            images_used=images_used,
        )

    # ── Content selection ────────────────────────────────────

    def _select_optimized(self, request: AnswerRequest) -> _Selection | None:
        try:
            if request.question_number:
                content = self.resolver.resolve_number(
                    request.question_number,
                    request.document_id,
                    request.answer_key_document_id,
                )
            else:
                content = self.resolver.resolve(
                    request.query, request.document_id, request.answer_key_document_id
                )
        except StorageError as exc:
            self.logger.warning(f"[{request.document_id}] Question lookup failed: {exc}")
            return None
        if content is None:
            return None

        try:
            question_image = self.storage.get_ref(content.question_image, self.fetch_timeout)
        except StorageError as exc:
            self.logger.warning(
                f"[{request.document_id}] Could not fetch image for question "
                f"{content.question_number}, falling back: {exc}"
            )
            return None

        scheme_images: list[bytes] = []
        if content.marking_scheme_image:
            try:
                scheme_images.append(
                    self.storage.get_ref(content.marking_scheme_image, self.fetch_timeout)
                )
            except StorageError as exc:
                self.logger.warning(
                    f"[{request.document_id}] Marking-scheme image for question "
                    f"{content.question_number} unavailable, omitting it: {exc}"
                )

        return _Selection(
            mode=AnswerMode.OPTIMIZED,
            exam_images=[question_image],
            scheme_images=scheme_images,
            content=content,
        )

    def _fetch_pages(self, document_id: str) -> list[bytes]:
        images: list[bytes] = []
        for ref in self.store.page_refs(document_id):
            try:
                images.append(self.storage.get_ref(ref, self.fetch_timeout))
            except StorageError as exc:
                self.logger.warning(f"[{document_id}] Skipping page image {ref}: {exc}")
        return images

    def _select_fallback(self, request: AnswerRequest) -> _Selection:
        exam_images = self._fetch_pages(request.document_id)
        if not exam_images:
            self.logger.error(f"[{request.document_id}] No page images available for fallback")
            raise NoContentAvailableError(
                f"no page images available for document {request.document_id!r}; "
                "the paper may still be processing"
            )
        key_id = request.answer_key_document_id or self.store.get_answer_key(request.document_id)
        scheme_images = self._fetch_pages(key_id) if key_id else []
        return _Selection(
            mode=AnswerMode.FALLBACK, exam_images=exam_images, scheme_images=scheme_images
        )
