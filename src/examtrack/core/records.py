from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from examtrack.core.errors import InvalidCountError, InvalidRecordError, UnknownSubjectError
from examtrack.core.formats import ExamFormat, parse_format, relevant_subjects
from examtrack.core.net import validate_count


@dataclass(frozen=True)
class SubjectAttempt:
    correct: int = 0
    incorrect: int = 0

    @property
    def total(self) -> int:
        return self.correct + self.incorrect

    def __add__(self, other: "SubjectAttempt") -> "SubjectAttempt":
        return SubjectAttempt(self.correct + other.correct, self.incorrect + other.incorrect)


EMPTY_ATTEMPT = SubjectAttempt()


@dataclass(frozen=True)
class ExamRecord:
    date: date
    format: ExamFormat
    subjects: Mapping[str, SubjectAttempt] = field(default_factory=dict)
    diploma_score: Optional[float] = None
    student_id: Optional[str] = None
    name: Optional[str] = None

    def attempt(self, subject: str) -> SubjectAttempt:
        return self.subjects.get(subject, EMPTY_ATTEMPT)


@dataclass(frozen=True)
class PracticeLog:
    date: date
    student_id: str
    subjects: Mapping[str, SubjectAttempt] = field(default_factory=dict)
    saved_at: Optional[datetime] = None

    @property
    def total_correct(self) -> int:
        return sum(a.correct for a in self.subjects.values())

    @property
    def total_incorrect(self) -> int:
        return sum(a.incorrect for a in self.subjects.values())

    @property
    def total(self) -> int:
        return self.total_correct + self.total_incorrect


def normalize_attempt(value: Any, subject: str = "subject") -> SubjectAttempt:
    """
    Accepts the current {correct, incorrect} shape or the legacy bare count,
    which means "correct answers, no wrong answers".
    """
    if isinstance(value, SubjectAttempt):
        return value
    if isinstance(value, Mapping):
        return SubjectAttempt(
            correct=validate_count(value.get("correct", 0), f"{subject}.correct"),
            incorrect=validate_count(value.get("incorrect", 0), f"{subject}.incorrect"),
        )
    if isinstance(value, int) and not isinstance(value, bool):
        return SubjectAttempt(correct=validate_count(value, f"{subject}.correct"), incorrect=0)
    raise InvalidCountError(f"{subject} must be a count or a correct/incorrect pair, got {value!r}")


def normalize_subjects(
    raw: Optional[Mapping[str, Any]],
    allowed: Optional[Iterable[str]] = None,
) -> Mapping[str, SubjectAttempt]:
    allowed_set = set(allowed) if allowed is not None else None
    subjects: Dict[str, SubjectAttempt] = {}
    for key, value in (raw or {}).items():
        if not isinstance(key, str) or not key.strip():
            raise UnknownSubjectError(f"Invalid subject key: {key!r}")
        if allowed_set is not None and key not in allowed_set:
            raise UnknownSubjectError(f"Subject '{key}' is not part of this exam format")
        subjects[key] = normalize_attempt(value, key)
    return MappingProxyType(subjects)


def parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            raise InvalidRecordError(f"Invalid date: {value!r}. Use YYYY-MM-DD.") from exc
    raise InvalidRecordError(f"Invalid date: {value!r}. Use YYYY-MM-DD.")


def _parse_diploma_score(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidRecordError(f"Diploma score must be a number, got {value!r}")
    if not 0 <= value <= 100:
        raise InvalidRecordError(f"Diploma score must be between 0 and 100, got {value!r}")
    return float(value)


def make_exam_record(
    exam_date: Any,
    exam_format: Any,
    subjects: Optional[Mapping[str, Any]] = None,
    *,
    diploma_score: Any = None,
    student_id: Optional[str] = None,
    name: Optional[str] = None,
) -> ExamRecord:
    fmt = parse_format(exam_format)
    return ExamRecord(
        date=parse_date(exam_date),
        format=fmt,
        subjects=normalize_subjects(subjects, relevant_subjects(fmt)),
        diploma_score=_parse_diploma_score(diploma_score),
        student_id=student_id,
        name=name,
    )


def make_practice_log(
    log_date: Any,
    student_id: str,
    subjects: Optional[Mapping[str, Any]] = None,
    *,
    saved_at: Optional[datetime] = None,
) -> PracticeLog:
    if not student_id or not str(student_id).strip():
        raise InvalidRecordError("Practice logs require a student id")
    return PracticeLog(
        date=parse_date(log_date),
        student_id=str(student_id),
        subjects=normalize_subjects(subjects),
        saved_at=saved_at,
    )


def exam_record_from_dict(payload: Mapping[str, Any]) -> ExamRecord:
    return make_exam_record(
        payload.get("date"),
        payload.get("format"),
        payload.get("subjects"),
        diploma_score=payload.get("diploma_score"),
        student_id=payload.get("student_id"),
        name=payload.get("name"),
    )


def practice_log_from_dict(payload: Mapping[str, Any]) -> PracticeLog:
    saved_at = payload.get("saved_at")
    if isinstance(saved_at, str):
        try:
            saved_at = datetime.fromisoformat(saved_at)
        except ValueError as exc:
            raise InvalidRecordError(f"Invalid saved_at timestamp: {saved_at!r}") from exc
    return make_practice_log(
        payload.get("date"),
        payload.get("student_id"),
        payload.get("subjects"),
        saved_at=saved_at,
    )


def _save_order(log: PracticeLog, position: int) -> Tuple[bool, datetime, int]:
    # Untimestamped saves rank below any timestamped save of the same day.
    return log.saved_at is not None, log.saved_at or datetime.min, position


def latest_logs(logs: Iterable[PracticeLog]) -> Tuple[PracticeLog, ...]:
    """
    One log per (student, day): a later save replaces the earlier one in full.
    Later saved_at wins; a log without saved_at loses to any log that has one,
    and among equal or missing timestamps the later item wins.
    """
    chosen: Dict[Tuple[str, date], Tuple[Tuple[bool, datetime, int], PracticeLog]] = {}
    for position, log in enumerate(logs):
        key = (log.student_id, log.date)
        order = _save_order(log, position)
        current = chosen.get(key)
        if current is not None and order < current[0]:
            continue
        chosen[key] = (order, log)
    return tuple(log for _, log in chosen.values())
