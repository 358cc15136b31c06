from examtutor.schema import QuestionBoundary

__all__ = ["merge_boundaries"]


def merge_boundaries(
    primary: list[QuestionBoundary], secondary: list[QuestionBoundary]
) -> list[QuestionBoundary]:
    """
    Reconcile two boundary lists by normalized question number.

    Every label from `primary` is kept. `secondary` only fills labels that
    `primary` lacks. Within each list the first occurrence of a label wins.
    The result is ordered by start page, ties kept in insertion order.

    Args:
        primary (list[QuestionBoundary]): Text-pattern results.
        secondary (list[QuestionBoundary]): Generative results.

    Returns:
        list[QuestionBoundary]: Merged boundaries, one per label.
    """
    merged: dict[str, QuestionBoundary] = {}
    for boundary in [*primary, *secondary]:
        merged.setdefault(boundary.key, boundary)
    return sorted(merged.values(), key=lambda b: b.start_page)
