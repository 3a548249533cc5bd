from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Tuple, Union

MONTH_NAMES: Tuple[str, ...] = (
    "Ocak",
    "Şubat",
    "Mart",
    "Nisan",
    "Mayıs",
    "Haziran",
    "Temmuz",
    "Ağustos",
    "Eylül",
    "Ekim",
    "Kasım",
    "Aralık",
)


class Granularity(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class Bucket:
    key: str
    label: str
    period_start: date


def parse_granularity(value: Union[str, Granularity]) -> Granularity:
    if isinstance(value, Granularity):
        return value
    try:
        return Granularity(str(value).strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unsupported granularity: {value!r}. Use daily, weekly or monthly.") from exc


def week_start(day: date) -> date:
    """Monday on or before the given day."""
    return day - timedelta(days=day.weekday())


def month_label(year: int, month: int) -> str:
    return f"{MONTH_NAMES[month - 1]} {year}"


def week_label(start: date) -> str:
    end = start + timedelta(days=6)
    return f"{start.day}/{start.month} – {end.day}/{end.month}"


def bucket_for(day: Union[date, datetime], granularity: Union[str, Granularity]) -> Bucket:
    if isinstance(day, datetime):
        day = day.date()
    granularity = parse_granularity(granularity)

    if granularity is Granularity.DAILY:
        return Bucket(
            key=day.isoformat(),
            label=f"{day.day} {MONTH_NAMES[day.month - 1]} {day.year}",
            period_start=day,
        )
    if granularity is Granularity.WEEKLY:
        start = week_start(day)
        return Bucket(key=start.isoformat(), label=week_label(start), period_start=start)

    start = day.replace(day=1)
    return Bucket(key=f"{start.year:04d}-{start.month:02d}", label=month_label(start.year, start.month), period_start=start)
