from .resolver import QuestionResolver, extract_question_number

__all__ = ["QuestionResolver", "extract_question_number"]
