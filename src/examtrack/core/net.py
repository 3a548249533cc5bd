from typing import Union

from examtrack.core.errors import InvalidCountError
from examtrack.core.formats import ExamFormat, parse_format

LGS_PENALTY_DIVISOR = 3
DEFAULT_PENALTY_DIVISOR = 4


def validate_count(value: object, field: str = "count") -> int:
    # bool is an int subclass but never a valid count
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidCountError(f"{field} must be a non-negative integer, got {value!r}")
    if value < 0:
        raise InvalidCountError(f"{field} must be a non-negative integer, got {value!r}")
    return value


def penalty_divisor(exam_format: Union[str, ExamFormat]) -> int:
    """How many wrong answers cancel one right answer."""
    if parse_format(exam_format) is ExamFormat.LGS:
        return LGS_PENALTY_DIVISOR
    return DEFAULT_PENALTY_DIVISOR


def raw_net(correct: int, incorrect: int, divisor: int) -> float:
    """
    Full-precision net: max(0, correct - incorrect / divisor).
    Use this when the net feeds further arithmetic and round the final result.
    """
    validate_count(correct, "correct")
    validate_count(incorrect, "incorrect")
    if divisor <= 0:
        raise ValueError("Penalty divisor must be greater than 0")
    return max(0.0, correct - incorrect / divisor)


def net(correct: int, incorrect: int, divisor: int, *, round_to: int = 2) -> float:
    return round(raw_net(correct, incorrect, divisor), round_to)


def attempt_net(attempt, exam_format: Union[str, ExamFormat], *, round_to: int = 2) -> float:
    return net(attempt.correct, attempt.incorrect, penalty_divisor(exam_format), round_to=round_to)
