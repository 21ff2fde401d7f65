from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Optional, Protocol

from gradetrack.core.entities import Grade, GradeInfo, GradeStatistics

logger = logging.getLogger(__name__)


# (lower bound inclusive, grade). First match wins, scanned top-down.
GRADE_BANDS: list[tuple[float, Grade]] = [
    (70, Grade.A),
    (60, Grade.B),
    (50, Grade.C),
    (45, Grade.D),
    (40, Grade.E),
]

GRADE_SCALE: Dict[Grade, GradeInfo] = {
    Grade.A: GradeInfo(Grade.A, 5.0, True, "Excellent (70-100)"),
    Grade.B: GradeInfo(Grade.B, 4.0, True, "Very Good (60-69)"),
    Grade.C: GradeInfo(Grade.C, 3.0, True, "Good (50-59)"),
    Grade.D: GradeInfo(Grade.D, 2.0, True, "Satisfactory (45-49)"),
    # E earns credit but is kept out of the passed bucket (weak pass).
    Grade.E: GradeInfo(Grade.E, 1.0, False, "Fair (40-44)"),
    Grade.F: GradeInfo(Grade.F, 0.0, False, "Failure (<40)"),
}

UNIVERSITY_TERMINOLOGY: Dict[str, str] = {
    "SCT": "Semesterial Course Taken",
    "TCT": "Total Course Taken",
    "SGP": "Semesterial Grade Point",
    "CGP": "Cumulative Grade Point",
    "GPA": "Grade Point Average",
    "CGPA": "Cumulative Grade Point Average",
}


class GradedCourse(Protocol):
    grade: str
    credit_unit: int


def clamp_0_100(value: float) -> float:
    return max(0.0, min(100.0, value))


def grade_from_score(score: float) -> GradeInfo:
    score = clamp_0_100(score)
    for low, grade in GRADE_BANDS:
        if score >= low:
            return GRADE_SCALE[grade]
    return GRADE_SCALE[Grade.F]


def grade_info(symbol: Optional[str]) -> Optional[GradeInfo]:
    if symbol is None:
        return None
    try:
        return GRADE_SCALE[Grade(str(symbol).strip().upper())]
    except ValueError:
        return None


def is_valid_grade(symbol: Optional[str]) -> bool:
    return grade_info(symbol) is not None


def grade_points(symbol: Optional[str]) -> float:
    info = grade_info(symbol)
    return info.points if info else 0.0


def all_grades() -> List[GradeInfo]:
    return list(GRADE_SCALE.values())


def calculate_sct(courses: Iterable[GradedCourse]) -> int:
    """
    SCT: credit units carried in one semester.
    Courses with an unrecognized grade carry no units.
    """
    return sum(c.credit_unit for c in courses if is_valid_grade(c.grade))


def calculate_sgp(courses: Iterable[GradedCourse]) -> float:
    """
    SGP: Σ(points * credit_unit) over one semester.
    """
    total = 0.0
    for c in courses:
        info = grade_info(c.grade)
        if info is None:
            logger.debug("Ignoring unrecognized grade %r", c.grade)
            continue
        total += info.points * c.credit_unit
    return total


def calculate_tct(all_courses: Iterable[GradedCourse]) -> int:
    """TCT: cumulative credit units across every semester."""
    return calculate_sct(all_courses)


def calculate_cgp(all_courses: Iterable[GradedCourse]) -> float:
    """CGP: same sum as SGP, taken over the full history. Not divided."""
    return calculate_sgp(all_courses)


def calculate_gpa(courses: Iterable[GradedCourse]) -> float:
    courses = list(courses)
    total_credits = calculate_sct(courses)
    if total_credits == 0:
        return 0.0
    return calculate_sgp(courses) / total_credits


def calculate_cgpa(all_courses: Iterable[GradedCourse]) -> float:
    return calculate_gpa(all_courses)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def grade_statistics(courses: Iterable[GradedCourse]) -> GradeStatistics:
    total = 0
    passed = 0
    weak_pass = 0
    failed = 0
    unrecognized = 0
    total_credits = 0
    distribution = {grade.value: 0 for grade in Grade}

    for c in courses:
        total += 1
        info = grade_info(c.grade)
        if info is None:
            unrecognized += 1
            continue

        total_credits += c.credit_unit
        distribution[info.grade.value] += 1
        if info.is_pass:
            passed += 1
        elif info.grade is Grade.E:
            weak_pass += 1
        else:
            failed += 1

    pass_rate = round_half_up(passed / total * 100) if total > 0 else 0

    return GradeStatistics(
        total_courses=total,
        passed_courses=passed,
        weak_pass_courses=weak_pass,
        failed_courses=failed,
        unrecognized_courses=unrecognized,
        total_credits=total_credits,
        pass_rate=pass_rate,
        grade_distribution=distribution,
    )
