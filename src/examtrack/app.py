import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from examtrack.config.settings import settings
from examtrack.core.aggregation import AggregatedBucket, aggregate_exams, aggregate_practice, exam_summary
from examtrack.core.buckets import Bucket, parse_granularity
from examtrack.core.filters import RecordFilter
from examtrack.core.formats import RELEVANT_SUBJECTS, ExamFormat, practice_group_for_grade, practice_subjects
from examtrack.core.net import net, penalty_divisor
from examtrack.core.records import make_exam_record, make_practice_log
from examtrack.core.scoring import PLACEMENT_SCORE_NAME, record_nets, score_bounds, score_record
from examtrack.core.thresholds import classify
from examtrack.core.trends import accuracy_series, domain_floor, volume_series


logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="ExamTrack API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allowed_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class NetPayload(BaseModel):
    correct: int
    incorrect: int = 0
    format: str = "TYT"


class ExamRecordPayload(BaseModel):
    date: str
    format: str
    subjects: Dict[str, Any] = Field(default_factory=dict)
    diploma_score: Optional[float] = None
    student_id: Optional[str] = None
    name: Optional[str] = None


class PracticeLogPayload(BaseModel):
    date: str
    student_id: str
    subjects: Dict[str, Any] = Field(default_factory=dict)
    saved_at: Optional[datetime] = None


class FilterPayload(BaseModel):
    student_id: Optional[str] = None
    exam_format: Optional[str] = None
    month: Optional[str] = None
    week_start: Optional[date] = None
    start_key: Optional[str] = None
    end_key: Optional[str] = None


class PracticeQueryPayload(BaseModel):
    logs: List[PracticeLogPayload]
    granularity: str = "daily"
    filters: FilterPayload = Field(default_factory=FilterPayload)


class ExamQueryPayload(BaseModel):
    records: List[ExamRecordPayload]
    granularity: str = "monthly"
    round_to: int = Field(default=2, ge=0, le=6)
    filters: FilterPayload = Field(default_factory=FilterPayload)


class ClassifyPayload(PracticeQueryPayload):
    target: Optional[float] = None


class TrendPayload(PracticeQueryPayload):
    subject: str = "all"


def _bad_request(exc: ValueError) -> HTTPException:
    logger.warning("Rejected payload: %s", exc)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _record_filter(payload: FilterPayload, granularity) -> RecordFilter:
    return RecordFilter(granularity=granularity, **payload.model_dump())


def _bucket_dict(bucket: Bucket) -> Dict[str, str]:
    return {"key": bucket.key, "label": bucket.label, "period_start": bucket.period_start.isoformat()}


def _aggregated_dict(item: AggregatedBucket) -> Dict:
    return {
        "bucket": _bucket_dict(item.bucket),
        "kind": item.kind,
        "total": item.total,
        "total_correct": item.total_correct,
        "total_incorrect": item.total_incorrect,
        "per_subject": {
            subject: {"correct": attempt.correct, "incorrect": attempt.incorrect}
            for subject, attempt in item.per_subject.items()
        },
        "record_count": item.record_count,
    }


def _practice_buckets(payload: PracticeQueryPayload) -> List[AggregatedBucket]:
    granularity = parse_granularity(payload.granularity)
    logs = [make_practice_log(log.date, log.student_id, log.subjects, saved_at=log.saved_at) for log in payload.logs]
    logs = _record_filter(payload.filters, granularity).apply(logs)
    return aggregate_practice(logs, granularity)


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/formats")
def list_formats() -> List[Dict]:
    formats = []
    for exam_format in ExamFormat:
        floor, ceiling = score_bounds(exam_format)
        formats.append(
            {
                "format": exam_format.value,
                "penalty_divisor": penalty_divisor(exam_format),
                "subjects": list(RELEVANT_SUBJECTS[exam_format]),
                "placement_score": PLACEMENT_SCORE_NAME[exam_format],
                "floor": floor,
                "ceiling": ceiling,
            }
        )
    return formats


@app.get("/practice-subjects/{grade_level}")
def list_practice_subjects(grade_level: str) -> Dict:
    return {"group": practice_group_for_grade(grade_level), "subjects": list(practice_subjects(grade_level))}


@app.post("/net")
def calculate_net(payload: NetPayload) -> Dict[str, float]:
    try:
        return {"net": net(payload.correct, payload.incorrect, penalty_divisor(payload.format))}
    except ValueError as exc:
        raise _bad_request(exc) from exc


@app.post("/scores")
def calculate_scores(payload: ExamRecordPayload) -> Dict:
    try:
        record = make_exam_record(
            payload.date,
            payload.format,
            payload.subjects,
            diploma_score=payload.diploma_score,
            student_id=payload.student_id,
            name=payload.name,
        )
        nets = {subject: round(value, 2) for subject, value in record_nets(record).items()}
        return {
            "format": record.format.value,
            "nets": nets,
            "scores": score_record(record),
            "placement_score": PLACEMENT_SCORE_NAME[record.format],
        }
    except ValueError as exc:
        raise _bad_request(exc) from exc


@app.post("/aggregate/practice")
def aggregate_practice_logs(payload: PracticeQueryPayload) -> List[Dict]:
    try:
        return [_aggregated_dict(item) for item in _practice_buckets(payload)]
    except ValueError as exc:
        raise _bad_request(exc) from exc


@app.post("/aggregate/exams")
def aggregate_exam_records(payload: ExamQueryPayload) -> Dict:
    try:
        granularity = parse_granularity(payload.granularity)
        records = [
            make_exam_record(
                item.date,
                item.format,
                item.subjects,
                diploma_score=item.diploma_score,
                student_id=item.student_id,
                name=item.name,
            )
            for item in payload.records
        ]
        records = _record_filter(payload.filters, granularity).apply(records)
        summary = exam_summary(records)
        return {
            "buckets": [_aggregated_dict(item) for item in aggregate_exams(records, granularity, round_to=payload.round_to)],
            "exam_count": summary.exam_count,
            "average_score": summary.average_score,
        }
    except ValueError as exc:
        raise _bad_request(exc) from exc


@app.post("/classify/practice")
def classify_practice(payload: ClassifyPayload) -> Dict:
    try:
        target = payload.target if payload.target is not None else settings.default_target(payload.granularity)
        result = classify(_practice_buckets(payload), "total", target)
        return {
            "target": target,
            "meets": result.meets,
            "below": result.below,
            "success_percent": result.success_percent,
        }
    except ValueError as exc:
        raise _bad_request(exc) from exc


@app.post("/trends/accuracy")
def accuracy_trend(payload: TrendPayload) -> Dict:
    try:
        buckets = _practice_buckets(payload)
        series = accuracy_series(buckets, payload.subject)
        volumes = volume_series(buckets, payload.subject)
        return {
            "series": [
                {
                    "bucket": _bucket_dict(point.bucket),
                    "correct_rate_percent": round(point.correct_rate_percent, 1),
                    "incorrect_rate_percent": round(point.incorrect_rate_percent, 1),
                    "questions": volume.questions,
                }
                for point, volume in zip(series, volumes)
            ],
            "domain_floor": domain_floor(point.correct_rate_percent for point in series),
        }
    except ValueError as exc:
        raise _bad_request(exc) from exc
