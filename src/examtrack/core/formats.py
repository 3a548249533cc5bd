from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Tuple, Union

from examtrack.core.errors import UnknownFormatError


class ExamFormat(str, Enum):
    LGS = "LGS"
    TYT = "TYT"
    AYT_SAY = "AYT_SAY"
    AYT_EA = "AYT_EA"
    AYT_SOZ = "AYT_SOZ"
    AYT_DIL = "AYT_DIL"
    GENERAL = "GENERAL"


AYT_FORMATS: Tuple[ExamFormat, ...] = (
    ExamFormat.AYT_SAY,
    ExamFormat.AYT_EA,
    ExamFormat.AYT_SOZ,
    ExamFormat.AYT_DIL,
)

# Spellings stored by older records.
_LEGACY_ALIASES: Dict[str, ExamFormat] = {
    "GENEL": ExamFormat.GENERAL,
    "AYT": ExamFormat.AYT_SAY,
}

LGS_SUBJECTS: Tuple[str, ...] = ("turkish", "math", "science", "inkilap", "religion", "foreign_lang")
TYT_SUBJECTS: Tuple[str, ...] = ("turkish", "social", "math", "science")
TYT_CONTRIBUTION_SUBJECTS: Tuple[str, ...] = ("tyt_turkish", "tyt_social", "tyt_math", "tyt_science")
AYT_SUBJECTS: Tuple[str, ...] = TYT_CONTRIBUTION_SUBJECTS + (
    "math",
    "physics",
    "chemistry",
    "biology",
    "literature",
    "history1",
    "geography1",
    "history2",
    "geography2",
    "philosophy",
    "religion",
    "foreign_lang",
)
GENERAL_SUBJECTS: Tuple[str, ...] = ("turkish", "math", "science", "social", "foreign_lang", "religion")

RELEVANT_SUBJECTS: Mapping[ExamFormat, Tuple[str, ...]] = MappingProxyType(
    {
        ExamFormat.LGS: LGS_SUBJECTS,
        ExamFormat.TYT: TYT_SUBJECTS,
        **{fmt: AYT_SUBJECTS for fmt in AYT_FORMATS},
        ExamFormat.GENERAL: GENERAL_SUBJECTS,
    }
)

PRACTICE_SUBJECT_GROUPS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "LGS": ("turkish", "math", "science", "social", "religion", "english", "paragraph"),
        "YKS": (
            "turkish",
            "math",
            "geometry",
            "history",
            "geography",
            "paragraph",
            "physics",
            "chemistry",
            "biology",
            "philosophy",
            "religion",
        ),
    }
)


def parse_format(value: Union[str, ExamFormat]) -> ExamFormat:
    if isinstance(value, ExamFormat):
        return value
    if not isinstance(value, str):
        raise UnknownFormatError(f"Unsupported exam format: {value!r}")
    normalized = value.strip().upper()
    if normalized in _LEGACY_ALIASES:
        return _LEGACY_ALIASES[normalized]
    try:
        return ExamFormat(normalized)
    except ValueError as exc:
        raise UnknownFormatError(f"Unsupported exam format: {value!r}") from exc


def relevant_subjects(exam_format: Union[str, ExamFormat]) -> Tuple[str, ...]:
    return RELEVANT_SUBJECTS[parse_format(exam_format)]


def practice_group_for_grade(grade_level: str) -> str:
    """Students above 8th grade, graduates included, practise for YKS."""
    try:
        grade = int(str(grade_level).strip())
    except ValueError:
        return "YKS"
    return "YKS" if grade > 8 else "LGS"


def practice_subjects(grade_level: str) -> Tuple[str, ...]:
    return PRACTICE_SUBJECT_GROUPS[practice_group_for_grade(grade_level)]
