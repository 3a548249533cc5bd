import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from examtrack.core.buckets import Bucket, Granularity, bucket_for
from examtrack.core.errors import MixedRecordKindsError
from examtrack.core.formats import practice_subjects
from examtrack.core.net import penalty_divisor, raw_net
from examtrack.core.numbers import round_half_up
from examtrack.core.records import ExamRecord, PracticeLog, SubjectAttempt, latest_logs
from examtrack.core.scoring import record_placement_score

logger = logging.getLogger(__name__)

PRACTICE = "practice"
EXAM = "exam"

DEFAULT_AVERAGE_SUBJECTS: Tuple[str, ...] = ("turkish", "math", "science", "social")


@dataclass(frozen=True)
class AggregatedBucket:
    bucket: Bucket
    kind: str
    total: float
    total_correct: int
    total_incorrect: int
    per_subject: Mapping[str, SubjectAttempt] = field(default_factory=dict)
    record_count: int = 0


@dataclass
class _Accumulator:
    bucket: Bucket
    correct: int = 0
    incorrect: int = 0
    weighted_total: float = 0.0
    record_count: int = 0
    per_subject: Dict[str, SubjectAttempt] = field(default_factory=dict)

    def add_subjects(self, subjects: Mapping[str, SubjectAttempt]) -> None:
        for subject, attempt in subjects.items():
            self.per_subject[subject] = self.per_subject.get(subject, SubjectAttempt()) + attempt
            self.correct += attempt.correct
            self.incorrect += attempt.incorrect


def _round_total(value: float, round_to: Optional[int]) -> float:
    if round_to is None:
        return value
    return round_half_up(value, round_to)


def _accumulator_for(groups: Dict[str, _Accumulator], bucket: Bucket) -> _Accumulator:
    acc = groups.get(bucket.key)
    if acc is None:
        acc = _Accumulator(bucket=bucket)
        groups[bucket.key] = acc
    return acc


def _emit(groups: Dict[str, _Accumulator], kind: str, round_to: Optional[int]) -> List[AggregatedBucket]:
    result: List[AggregatedBucket] = []
    for key in sorted(groups):
        acc = groups[key]
        if kind == PRACTICE:
            total: float = acc.correct + acc.incorrect
        else:
            total = _round_total(acc.weighted_total / acc.record_count, round_to)
        result.append(
            AggregatedBucket(
                bucket=acc.bucket,
                kind=kind,
                total=total,
                total_correct=acc.correct,
                total_incorrect=acc.incorrect,
                per_subject=MappingProxyType(dict(sorted(acc.per_subject.items()))),
                record_count=acc.record_count,
            )
        )
    return result


def aggregate_practice(logs: Iterable[PracticeLog], granularity: Union[str, Granularity]) -> List[AggregatedBucket]:
    """Question volume adds up: totals and per-subject attempts are summed per bucket."""
    groups: Dict[str, _Accumulator] = {}
    for log in latest_logs(logs):
        acc = _accumulator_for(groups, bucket_for(log.date, granularity))
        acc.add_subjects(log.subjects)
        acc.record_count += 1
    return _emit(groups, PRACTICE, None)


def aggregate_exams(
    records: Iterable[ExamRecord],
    granularity: Union[str, Granularity],
    *,
    round_to: Optional[int] = 2,
) -> List[AggregatedBucket]:
    """
    Scores average: bucket total is the mean placement score of its exams.
    round_to=0 gives whole numbers for dashboards, 2 for detail views.
    """
    groups: Dict[str, _Accumulator] = {}
    for record in records:
        acc = _accumulator_for(groups, bucket_for(record.date, granularity))
        acc.add_subjects(record.subjects)
        acc.weighted_total += record_placement_score(record, round_to=None)
        acc.record_count += 1
    return _emit(groups, EXAM, round_to)


def reaggregate(
    buckets: Iterable[AggregatedBucket],
    granularity: Union[str, Granularity],
    *,
    round_to: Optional[int] = 2,
) -> List[AggregatedBucket]:
    """
    Folds aggregated buckets again, each one a unit record at its period start.
    With the same granularity the input comes back unchanged; exam buckets
    merged into a coarser bucket are averaged by their record counts.
    """
    items = list(buckets)
    kinds = {item.kind for item in items}
    if len(kinds) > 1:
        raise MixedRecordKindsError("Cannot aggregate practice and exam buckets together")
    kind = kinds.pop() if kinds else PRACTICE

    groups: Dict[str, _Accumulator] = {}
    for item in items:
        acc = _accumulator_for(groups, bucket_for(item.bucket.period_start, granularity))
        acc.add_subjects(item.per_subject)
        # Buckets built from bare totals carry no per-subject detail.
        if not item.per_subject:
            acc.correct += item.total_correct
            acc.incorrect += item.total_incorrect
        weight = max(item.record_count, 1)
        acc.weighted_total += item.total * weight
        acc.record_count += weight
    return _emit(groups, kind, round_to)


def aggregate(
    records: Iterable[Union[PracticeLog, ExamRecord, AggregatedBucket]],
    granularity: Union[str, Granularity],
    *,
    round_to: Optional[int] = 2,
) -> List[AggregatedBucket]:
    items = list(records)
    if not items:
        return []

    if all(isinstance(item, PracticeLog) for item in items):
        result = aggregate_practice(items, granularity)
    elif all(isinstance(item, ExamRecord) for item in items):
        result = aggregate_exams(items, granularity, round_to=round_to)
    elif all(isinstance(item, AggregatedBucket) for item in items):
        result = reaggregate(items, granularity, round_to=round_to)
    else:
        raise MixedRecordKindsError("Practice logs and exam records must be aggregated separately")

    logger.debug("Aggregated %d records into %d %s buckets", len(items), len(result), granularity)
    return result


@dataclass(frozen=True)
class ExamSummary:
    exam_count: int
    average_score: int


def exam_summary(records: Sequence[ExamRecord]) -> ExamSummary:
    if not records:
        return ExamSummary(exam_count=0, average_score=0)
    total = sum(record_placement_score(record, round_to=None) for record in records)
    return ExamSummary(exam_count=len(records), average_score=round_half_up(total / len(records)))


def subject_averages(
    records: Sequence[ExamRecord],
    subjects: Sequence[str] = DEFAULT_AVERAGE_SUBJECTS,
) -> Dict[str, float]:
    """Mean net per subject across exams, one decimal place."""
    if not records:
        return {}
    averages: Dict[str, float] = {}
    for subject in subjects:
        total = 0.0
        for record in records:
            attempt = record.attempt(subject)
            total += raw_net(attempt.correct, attempt.incorrect, penalty_divisor(record.format))
        averages[subject] = round_half_up(total / len(records), 1)
    return averages


def active_subjects(logs: Iterable[PracticeLog], grade_level: Optional[str] = None) -> List[str]:
    """
    Subject keys with any attempts, sorted. With a grade level they follow that
    grade's practice group order, and keys outside the group come last.
    """
    keys = set()
    for log in logs:
        for subject, attempt in log.subjects.items():
            if attempt.total > 0:
                keys.add(subject)
    if grade_level is None:
        return sorted(keys)
    group = practice_subjects(grade_level)
    return [subject for subject in group if subject in keys] + sorted(keys.difference(group))
