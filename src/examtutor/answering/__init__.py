from .orchestrator import AnswerOrchestrator, AnswerRequest, AnswerResult
from .prompts import ANSWER_SECTIONS, SYSTEM_PROMPT

__all__ = [
    "AnswerOrchestrator",
    "AnswerRequest",
    "AnswerResult",
    "SYSTEM_PROMPT",
    "ANSWER_SECTIONS",
]
