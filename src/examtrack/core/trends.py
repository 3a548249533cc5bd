from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from examtrack.core.aggregation import AggregatedBucket
from examtrack.core.buckets import Bucket

ALL_SUBJECTS = "all"
PERCENT_LADDER: Tuple[float, ...] = (0, 50, 75)


@dataclass(frozen=True)
class AccuracyPoint:
    bucket: Bucket
    correct_rate_percent: float
    incorrect_rate_percent: float


@dataclass(frozen=True)
class VolumePoint:
    bucket: Bucket
    questions: int


def _counts(item: AggregatedBucket, subject: str) -> Tuple[int, int]:
    if subject == ALL_SUBJECTS:
        return item.total_correct, item.total_incorrect
    attempt = item.per_subject.get(subject)
    if attempt is None:
        return 0, 0
    return attempt.correct, attempt.incorrect


def correct_rate(correct: int, incorrect: int) -> float:
    answered = correct + incorrect
    if answered == 0:
        return 0.0
    return correct / answered * 100


def accuracy_series(buckets: Iterable[AggregatedBucket], subject: str = ALL_SUBJECTS) -> List[AccuracyPoint]:
    series: List[AccuracyPoint] = []
    for item in buckets:
        correct, incorrect = _counts(item, subject)
        if correct + incorrect == 0:
            series.append(AccuracyPoint(item.bucket, 0.0, 0.0))
            continue
        rate = correct_rate(correct, incorrect)
        series.append(AccuracyPoint(item.bucket, rate, 100 - rate))
    return series


def volume_series(buckets: Iterable[AggregatedBucket], subject: str = ALL_SUBJECTS) -> List[VolumePoint]:
    return [VolumePoint(item.bucket, sum(_counts(item, subject))) for item in buckets]


def domain_floor(values: Iterable[float], ladder: Sequence[float] = PERCENT_LADDER) -> float:
    """
    Lowest y-axis value for a chart: the series minimum snapped down to the
    nearest rung. For percentages: below 50 -> 0, below 75 -> 50, else 75.
    """
    values = list(values)
    rungs = sorted(ladder)
    if not values or not rungs:
        return 0
    lowest = min(values)
    floor = rungs[0]
    for rung in rungs:
        if rung <= lowest:
            floor = rung
    return floor
