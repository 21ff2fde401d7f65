from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from gradetrack.config.settings import Settings, settings as default_settings
from gradetrack.core.entities import (
    AcademicStanding,
    ComprehensiveGPA,
    CourseResult,
    GPATrend,
    GradeStatistics,
    GraduationRequirements,
    Level,
    LevelGPA,
    Progression,
    Semester,
    SessionGPA,
    session_key,
)
from gradetrack.core.grades import calculate_sct, calculate_sgp, grade_statistics, is_valid_grade

logger = logging.getLogger(__name__)


# (lower bound inclusive, standing, description, color, range label)
STANDING_BANDS: list[tuple[float, str, str, str, str]] = [
    (4.5, "First Class", "Excellent Performance", "green", "4.5-5.0"),
    (3.5, "Second Class Upper", "Very Good Performance", "blue", "3.5-4.49"),
    (2.4, "Second Class Lower", "Good Performance", "yellow", "2.40-3.49"),
    (1.5, "Third Class", "Pass Performance", "orange", "1.50-2.39"),
    (1.0, "Pass", "Minimum Pass", "red", "1.00-1.49"),
]
FAIL_STANDING = AcademicStanding("Fail", "Below Minimum Pass", "red", "0.00-0.99")


def _totals(courses: Sequence[CourseResult]) -> Tuple[float, int, float]:
    """Return (grade points, credits, unrounded gpa)."""
    grade_points = calculate_sgp(courses)
    credits = calculate_sct(courses)
    gpa = grade_points / credits if credits > 0 else 0.0
    return grade_points, credits, gpa


def approved_results(results: Iterable[CourseResult], settings: Optional[Settings] = None) -> List[CourseResult]:
    settings = settings or default_settings
    return [r for r in results if r.status == settings.approved_status]


def calculate_session_gpas(results: Iterable[CourseResult]) -> List[SessionGPA]:
    sessions: Dict[Tuple[str, Semester], List[CourseResult]] = {}
    for r in results:
        sessions.setdefault((r.academic_year, r.semester), []).append(r)

    session_gpas = []
    for (academic_year, semester), courses in sessions.items():
        grade_points, credits, gpa = _totals(courses)
        session_gpas.append(
            SessionGPA(
                academic_year=academic_year,
                semester=semester,
                gpa=round(gpa, 2),
                total_credits=credits,
                total_grade_points=grade_points,
                courses=tuple(courses),
            )
        )

    session_gpas.sort(key=lambda s: (s.academic_year, s.semester.order))
    return session_gpas


def calculate_level_gpas(results: Iterable[CourseResult]) -> List[LevelGPA]:
    levels: Dict[Level, List[CourseResult]] = {}
    for r in results:
        levels.setdefault(r.level, []).append(r)

    level_gpas = []
    for level, courses in levels.items():
        grade_points, credits, gpa = _totals(courses)
        sessions = sorted(
            {(c.academic_year, c.semester) for c in courses},
            key=lambda pair: (pair[0], pair[1].order),
        )
        level_gpas.append(
            LevelGPA(
                level=level,
                gpa=round(gpa, 2),
                total_credits=credits,
                total_grade_points=grade_points,
                sessions=tuple(session_key(year, semester) for year, semester in sessions),
                courses=tuple(courses),
            )
        )

    level_gpas.sort(key=lambda lg: lg.level.number)
    return level_gpas


def calculate_progression(
    results: Sequence[CourseResult],
    cgpa: float,
    settings: Optional[Settings] = None,
) -> Progression:
    settings = settings or default_settings

    level_credits = {level: 0 for level in Level}
    for r in results:
        if is_valid_grade(r.grade):
            level_credits[r.level] += r.credit_unit

    # Highest level holding enough credits to count as "at" that level.
    current_level = Level.LEVEL_100
    for level in reversed(list(Level)):
        if level_credits[level] >= settings.min_level_credits:
            current_level = level
            break

    credits_to_next_level = max(0, settings.credits_per_level - level_credits[current_level])

    total_credits = sum(level_credits.values())
    required = settings.graduation_required_credits
    can_graduate = (
        total_credits >= required
        and current_level.next_level() is None
        and cgpa >= settings.graduation_min_cgpa
    )

    return Progression(
        current_level=current_level,
        next_level=current_level.next_level(),
        credits_to_next_level=credits_to_next_level,
        can_graduate=can_graduate,
        graduation_requirements=GraduationRequirements(
            total_credits=total_credits,
            required_credits=required,
            remaining_credits=max(0, required - total_credits),
            min_cgpa_required=settings.graduation_min_cgpa,
        ),
    )


def calculate_statistics(results: Iterable[CourseResult]) -> GradeStatistics:
    return grade_statistics(results)


def calculate_comprehensive_gpa(
    results: Iterable[CourseResult],
    settings: Optional[Settings] = None,
) -> ComprehensiveGPA:
    """
    Build the full GPA report for one student.

    Only results whose status matches ``settings.approved_status`` are used;
    everything else is dropped before any arithmetic. Totals are summed
    unrounded and GPAs are rounded to 2 dp only when placed on the report.
    """
    settings = settings or default_settings
    results = list(results)
    approved = approved_results(results, settings)
    logger.debug("Computing GPA from %d of %d results", len(approved), len(results))

    total_grade_points, total_credits, cgpa = _totals(approved)

    report = ComprehensiveGPA(
        cgpa=round(cgpa, 2),
        total_credits=total_credits,
        total_grade_points=total_grade_points,
        session_gpas=tuple(calculate_session_gpas(approved)),
        level_gpas=tuple(calculate_level_gpas(approved)),
        progression=calculate_progression(approved, cgpa, settings),
        statistics=calculate_statistics(approved),
    )
    if report.statistics.unrecognized_courses:
        logger.warning(
            "%d approved results carry an unrecognized grade and were left out of the GPA",
            report.statistics.unrecognized_courses,
        )
    logger.debug("CGPA %.2f over %d credits", report.cgpa, total_credits)
    return report


def get_gpa_trend(session_gpas: Sequence[SessionGPA], settings: Optional[Settings] = None) -> GPATrend:
    settings = settings or default_settings
    if len(session_gpas) < 2:
        return GPATrend(trend="stable", change=0.0, sessions=len(session_gpas))

    change = round(session_gpas[-1].gpa - session_gpas[0].gpa, 2)

    trend = "stable"
    if change > settings.trend_threshold:
        trend = "improving"
    elif change < -settings.trend_threshold:
        trend = "declining"

    return GPATrend(trend=trend, change=change, sessions=len(session_gpas))


def can_proceed_to_next_level(level_gpa: LevelGPA, minimum_gpa: Optional[float] = None) -> bool:
    if minimum_gpa is None:
        minimum_gpa = default_settings.proceed_min_gpa
    return level_gpa.gpa >= minimum_gpa


def get_academic_standing(cgpa: float) -> AcademicStanding:
    for low, standing, description, color, cgpa_range in STANDING_BANDS:
        if cgpa >= low:
            return AcademicStanding(standing, description, color, cgpa_range)
    return FAIL_STANDING
