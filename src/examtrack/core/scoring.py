from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, Union

from examtrack.core.errors import InvalidRecordError, UnknownSubjectError
from examtrack.core.formats import AYT_FORMATS, GENERAL_SUBJECTS, RELEVANT_SUBJECTS, ExamFormat, parse_format
from examtrack.core.net import penalty_divisor, raw_net
from examtrack.core.numbers import clamp
from examtrack.core.records import ExamRecord

DIPLOMA_WEIGHT = 0.6
TYT_CONTRIBUTION_SHARE = 0.4
TYT_CONTRIBUTION_COEFFICIENTS: Mapping[str, float] = MappingProxyType(
    {
        "tyt_turkish": 1.32,
        "tyt_social": 1.36,
        "tyt_math": 1.32,
        "tyt_science": 1.36,
    }
)


@dataclass(frozen=True)
class ScoreRule:
    base: float
    coefficients: Mapping[str, float]
    floor: float
    ceiling: float
    uses_diploma: bool = False
    uses_tyt_contribution: bool = False


LGS_RULE = ScoreRule(
    base=194.76,
    coefficients=MappingProxyType(
        {
            "turkish": 3.84,
            "math": 4.90,
            "science": 3.96,
            "inkilap": 1.54,
            "religion": 1.62,
            "foreign_lang": 1.52,
        }
    ),
    floor=100,
    ceiling=500,
)

TYT_RULE = ScoreRule(
    base=100,
    coefficients=MappingProxyType({"turkish": 3.3, "social": 3.4, "math": 3.3, "science": 3.4}),
    floor=0,
    ceiling=560,
    uses_diploma=True,
)

AYT_RULES: Mapping[str, ScoreRule] = MappingProxyType(
    {
        "SAY": ScoreRule(
            base=100,
            coefficients=MappingProxyType({"math": 3, "physics": 2.85, "chemistry": 3.07, "biology": 3.07}),
            floor=0,
            ceiling=560,
            uses_diploma=True,
            uses_tyt_contribution=True,
        ),
        "EA": ScoreRule(
            base=100,
            coefficients=MappingProxyType({"math": 3, "literature": 3, "history1": 2.8, "geography1": 3.33}),
            floor=0,
            ceiling=560,
            uses_diploma=True,
            uses_tyt_contribution=True,
        ),
        "SOZ": ScoreRule(
            base=100,
            coefficients=MappingProxyType(
                {
                    "literature": 3,
                    "history1": 2.8,
                    "geography1": 3.33,
                    "history2": 2.91,
                    "geography2": 2.91,
                    "philosophy": 3,
                    "religion": 3.33,
                }
            ),
            floor=0,
            ceiling=560,
            uses_diploma=True,
            uses_tyt_contribution=True,
        ),
        "DIL": ScoreRule(
            base=100,
            coefficients=MappingProxyType({"foreign_lang": 3}),
            floor=0,
            ceiling=560,
            uses_diploma=True,
            uses_tyt_contribution=True,
        ),
    }
)

# General practice exams have no published formula; their score is the total net.
GENERAL_RULE = ScoreRule(
    base=0,
    coefficients=MappingProxyType({subject: 1 for subject in GENERAL_SUBJECTS}),
    floor=0,
    ceiling=560,
)

RULES_BY_FORMAT: Mapping[ExamFormat, Mapping[str, ScoreRule]] = MappingProxyType(
    {
        ExamFormat.LGS: MappingProxyType({"LGS": LGS_RULE}),
        ExamFormat.TYT: MappingProxyType({"TYT": TYT_RULE}),
        **{fmt: AYT_RULES for fmt in AYT_FORMATS},
        ExamFormat.GENERAL: MappingProxyType({"GENERAL": GENERAL_RULE}),
    }
)

PLACEMENT_SCORE_NAME: Mapping[ExamFormat, str] = MappingProxyType(
    {
        ExamFormat.LGS: "LGS",
        ExamFormat.TYT: "TYT",
        ExamFormat.AYT_SAY: "SAY",
        ExamFormat.AYT_EA: "EA",
        ExamFormat.AYT_SOZ: "SOZ",
        ExamFormat.AYT_DIL: "DIL",
        ExamFormat.GENERAL: "GENERAL",
    }
)


def _validate_diploma(diploma_score: Optional[float]) -> float:
    if diploma_score is None:
        return 0.0
    if not 0 <= diploma_score <= 100:
        raise InvalidRecordError(f"Diploma score must be between 0 and 100, got {diploma_score!r}")
    return float(diploma_score)


def _validate_subjects(fmt: ExamFormat, subject_nets: Mapping[str, float]) -> None:
    allowed = RELEVANT_SUBJECTS[fmt]
    for subject in subject_nets:
        if subject not in allowed:
            raise UnknownSubjectError(f"Subject '{subject}' is not part of the {fmt.value} format")


def tyt_contribution(subject_nets: Mapping[str, float]) -> float:
    """40% of a fixed-weight TYT estimate, added to every AYT score."""
    raw = 100.0
    for subject, coefficient in TYT_CONTRIBUTION_COEFFICIENTS.items():
        raw += (subject_nets.get(subject) or 0.0) * coefficient
    return raw * TYT_CONTRIBUTION_SHARE


def _apply_rule(rule: ScoreRule, subject_nets: Mapping[str, float], diploma: float) -> float:
    total = rule.base
    for subject, coefficient in rule.coefficients.items():
        total += (subject_nets.get(subject) or 0.0) * coefficient
    if rule.uses_tyt_contribution:
        total += tyt_contribution(subject_nets)
    if rule.uses_diploma:
        total += diploma * DIPLOMA_WEIGHT
    return clamp(total, rule.floor, rule.ceiling)


def calculate_scores(
    exam_format: Union[str, ExamFormat],
    subject_nets: Mapping[str, float],
    diploma_score: Optional[float] = None,
    *,
    round_to: Optional[int] = 3,
) -> Dict[str, float]:
    """
    Named placement scores for one exam. AYT formats always yield SAY, EA, SOZ
    and DIL together, each clamped on its own. Missing nets count as zero;
    subjects outside the format raise UnknownSubjectError.
    round_to=None keeps full precision.
    """
    fmt = parse_format(exam_format)
    _validate_subjects(fmt, subject_nets)
    diploma = _validate_diploma(diploma_score)
    scores = {name: _apply_rule(rule, subject_nets, diploma) for name, rule in RULES_BY_FORMAT[fmt].items()}
    if round_to is None:
        return scores
    return {name: round(value, round_to) for name, value in scores.items()}


def placement_score(
    exam_format: Union[str, ExamFormat],
    subject_nets: Mapping[str, float],
    diploma_score: Optional[float] = None,
    *,
    round_to: Optional[int] = 3,
) -> float:
    fmt = parse_format(exam_format)
    scores = calculate_scores(fmt, subject_nets, diploma_score, round_to=round_to)
    return scores[PLACEMENT_SCORE_NAME[fmt]]


def score_bounds(exam_format: Union[str, ExamFormat]) -> Tuple[float, float]:
    rule = next(iter(RULES_BY_FORMAT[parse_format(exam_format)].values()))
    return rule.floor, rule.ceiling


def record_nets(record: ExamRecord) -> Dict[str, float]:
    divisor = penalty_divisor(record.format)
    return {
        subject: raw_net(attempt.correct, attempt.incorrect, divisor)
        for subject, attempt in record.subjects.items()
    }


def score_record(record: ExamRecord, *, round_to: Optional[int] = 3) -> Dict[str, float]:
    return calculate_scores(record.format, record_nets(record), record.diploma_score, round_to=round_to)


def record_placement_score(record: ExamRecord, *, round_to: Optional[int] = 3) -> float:
    return score_record(record, round_to=round_to)[PLACEMENT_SCORE_NAME[record.format]]


@dataclass(frozen=True)
class SubjectBreakdown:
    subject: str
    correct: int
    incorrect: int
    net: float


def exam_breakdown(record: ExamRecord) -> Tuple[List[SubjectBreakdown], int, int]:
    """Per-subject rows with data, plus total correct and total incorrect."""
    divisor = penalty_divisor(record.format)
    rows: List[SubjectBreakdown] = []
    for subject, attempt in record.subjects.items():
        if attempt.total == 0:
            continue
        rows.append(
            SubjectBreakdown(
                subject=subject,
                correct=attempt.correct,
                incorrect=attempt.incorrect,
                net=round(raw_net(attempt.correct, attempt.incorrect, divisor), 2),
            )
        )
    total_correct = sum(row.correct for row in rows)
    total_incorrect = sum(row.incorrect for row in rows)
    return rows, total_correct, total_incorrect
