from dataclasses import dataclass, field
from operator import attrgetter
from typing import Callable, Iterable, Tuple, TypeVar, Union

from examtrack.core.numbers import round_half_up

T = TypeVar("T")
MetricSelector = Union[str, Callable[[T], float]]


@dataclass(frozen=True)
class Classification:
    meets: int
    below: int
    success_percent: int
    meeting: Tuple = field(default=(), repr=False)
    missing: Tuple = field(default=(), repr=False)


def success_percent(meets: int, below: int) -> int:
    considered = meets + below
    if considered == 0:
        return 0
    return round_half_up(meets / considered * 100)


def classify(buckets: Iterable[T], metric: MetricSelector, target: float) -> Classification:
    """
    Splits buckets into those whose metric reaches the target (>=) and those
    below it. The target always comes from the caller.
    """
    selector = attrgetter(metric) if isinstance(metric, str) else metric
    meeting = []
    missing = []
    for bucket in buckets:
        if selector(bucket) >= target:
            meeting.append(bucket)
        else:
            missing.append(bucket)
    return Classification(
        meets=len(meeting),
        below=len(missing),
        success_percent=success_percent(len(meeting), len(missing)),
        meeting=tuple(meeting),
        missing=tuple(missing),
    )
