import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple, TypeVar, Union

from examtrack.core.buckets import Granularity, bucket_for, month_label, week_label, week_start
from examtrack.core.errors import InvalidRecordError
from examtrack.core.formats import ExamFormat, parse_format
from examtrack.core.records import ExamRecord, PracticeLog

R = TypeVar("R", ExamRecord, PracticeLog)

_MONTH_PATTERN = re.compile(r"\d{4}-(0[1-9]|1[0-2])")


@dataclass(frozen=True)
class RecordFilter:
    """
    Explicit filter parameters applied before aggregation. Every field is
    optional; set fields must all match. Choosing a month does not clear a
    chosen week; callers own that interaction.
    """

    student_id: Optional[str] = None
    exam_format: Optional[Union[str, ExamFormat]] = None
    month: Optional[str] = None
    week_start: Optional[date] = None
    start_key: Optional[str] = None
    end_key: Optional[str] = None
    granularity: Granularity = Granularity.DAILY

    def __post_init__(self):
        if self.month is not None and not _MONTH_PATTERN.fullmatch(self.month):
            raise InvalidRecordError(f"Invalid month filter: {self.month!r}. Use YYYY-MM.")

    def matches(self, record: Union[ExamRecord, PracticeLog]) -> bool:
        if self.student_id is not None and record.student_id != self.student_id:
            return False
        if self.exam_format is not None:
            if not isinstance(record, ExamRecord) or record.format is not parse_format(self.exam_format):
                return False
        day = record.date
        if self.month is not None and day.isoformat()[:7] != self.month:
            return False
        if self.week_start is not None:
            if not self.week_start <= day <= self.week_start + timedelta(days=6):
                return False
        if self.start_key is not None or self.end_key is not None:
            key = bucket_for(day, self.granularity).key
            if self.start_key is not None and key < self.start_key:
                return False
            if self.end_key is not None and key > self.end_key:
                return False
        return True

    def apply(self, records: Iterable[R]) -> List[R]:
        return [record for record in records if self.matches(record)]


def available_months(records: Iterable[Union[ExamRecord, PracticeLog]]) -> List[Tuple[str, str]]:
    """(YYYY-MM, label) options, newest first."""
    months = {record.date.isoformat()[:7] for record in records}
    return [(key, month_label(int(key[:4]), int(key[5:7]))) for key in sorted(months, reverse=True)]


def available_weeks(records: Iterable[Union[ExamRecord, PracticeLog]]) -> List[Tuple[str, str]]:
    """(Monday ISO date, label) options, newest first."""
    mondays = {week_start(record.date) for record in records}
    return [(monday.isoformat(), week_label(monday)) for monday in sorted(mondays, reverse=True)]
