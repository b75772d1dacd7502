"""Subjects, grades and grade averages on the 1-6 scale."""
import math
from datetime import date as date_cls
from typing import Iterable

from notio.db import GradeNotFoundError, SubjectNotFoundError, get_connection
from notio.models import Grade, Subject

CATEGORIES = ("main", "minor")
GRADE_TYPES = ("written", "oral")
MIN_GRADE = 1.0
MAX_GRADE = 6.0
DEFAULT_MAIN_WEIGHT = 2.0
DEFAULT_MINOR_WEIGHT = 1.0


def _subject_from_row(row) -> Subject:
    return Subject(
        id=row["id"],
        name=row["name"],
        category=row["category"],
        grade_level=row["grade_level"],
        written_weight=row["written_weight"],
        oral_weight=row["oral_weight"],
        target_grade=row["target_grade"],
    )


def _grade_from_row(row) -> Grade:
    return Grade(
        id=row["id"],
        subject_id=row["subject_id"],
        type=row["type"],
        value=row["value"],
        weight=row["weight"],
        date=row["date"],
        name=row["name"] or "",
        notes=row["notes"] or "",
    )


def add_subject(
    db_path: str,
    name: str,
    category: str,
    grade_level: int,
    written_weight: float | None = None,
    oral_weight: float | None = None,
    target_grade: float | None = None,
) -> Subject:
    name = name.strip()
    if not name:
        raise ValueError("Subject name must not be empty")
    if category not in CATEGORIES:
        raise ValueError(f"Unknown category: {category}")
    if target_grade is not None and not MIN_GRADE <= target_grade <= MAX_GRADE:
        raise ValueError(f"Target grade must be between {MIN_GRADE} and {MAX_GRADE}")
    conn = get_connection(db_path)
    cur = conn.execute(
        """INSERT INTO subjects (name, category, grade_level, written_weight, oral_weight, target_grade)
        VALUES (?, ?, ?, ?, ?, ?)""",
        (name, category, grade_level, written_weight, oral_weight, target_grade),
    )
    conn.commit()
    subject_id = cur.lastrowid
    conn.close()
    return Subject(
        id=subject_id, name=name, category=category, grade_level=grade_level,
        written_weight=written_weight, oral_weight=oral_weight, target_grade=target_grade,
    )


def get_subject(db_path: str, subject_id: int) -> Subject:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM subjects WHERE id = ?", (subject_id,)).fetchone()
    conn.close()
    if row is None:
        raise SubjectNotFoundError(subject_id)
    return _subject_from_row(row)


def list_subjects(db_path: str, grade_level: int | None = None) -> list[Subject]:
    conn = get_connection(db_path)
    if grade_level is None:
        rows = conn.execute("SELECT * FROM subjects ORDER BY name").fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM subjects WHERE grade_level = ? ORDER BY name", (grade_level,)
        ).fetchall()
    conn.close()
    return [_subject_from_row(r) for r in rows]


def delete_subject(db_path: str, subject_id: int) -> None:
    conn = get_connection(db_path)
    with conn:
        cur = conn.execute("DELETE FROM subjects WHERE id = ?", (subject_id,))
    conn.close()
    if cur.rowcount == 0:
        raise SubjectNotFoundError(subject_id)


def add_grade(
    db_path: str,
    subject_id: int,
    type: str,
    value: float,
    weight: float = 1.0,
    date: str | None = None,
    name: str = "",
    notes: str = "",
) -> Grade:
    if type not in GRADE_TYPES:
        raise ValueError(f"Unknown grade type: {type}")
    if not math.isfinite(value) or not math.isfinite(weight):
        raise ValueError("Grade and weight must be finite numbers")
    if not MIN_GRADE <= value <= MAX_GRADE:
        raise ValueError(f"Grade must be between {MIN_GRADE} and {MAX_GRADE}")
    if weight <= 0:
        raise ValueError("Weight must be positive")
    if date is None:
        date = date_cls.today().isoformat()
    get_subject(db_path, subject_id)
    conn = get_connection(db_path)
    cur = conn.execute(
        """INSERT INTO grades (subject_id, type, name, value, weight, date, notes)
        VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (subject_id, type, name, value, weight, date, notes),
    )
    conn.commit()
    grade_id = cur.lastrowid
    conn.close()
    return Grade(
        id=grade_id, subject_id=subject_id, type=type, value=value,
        weight=weight, date=date, name=name, notes=notes,
    )


def list_grades(db_path: str, subject_id: int | None = None) -> list[Grade]:
    conn = get_connection(db_path)
    if subject_id is None:
        rows = conn.execute("SELECT * FROM grades ORDER BY date, id").fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM grades WHERE subject_id = ? ORDER BY date, id", (subject_id,)
        ).fetchall()
    conn.close()
    return [_grade_from_row(r) for r in rows]


def delete_grade(db_path: str, grade_id: int) -> None:
    conn = get_connection(db_path)
    with conn:
        cur = conn.execute("DELETE FROM grades WHERE id = ?", (grade_id,))
    conn.close()
    if cur.rowcount == 0:
        raise GradeNotFoundError(grade_id)


def calculate_final_grade(grades: Iterable[Grade]) -> float | None:
    """Weighted mean of the grades, None when there is nothing to average."""
    grades = list(grades)
    total_weight = sum(g.weight for g in grades)
    if not grades or total_weight == 0:
        return None
    return sum(g.value * g.weight for g in grades) / total_weight


def subject_average(subject: Subject, grades: Iterable[Grade]) -> float | None:
    """Final grade of one subject.

    Subjects with both a written and an oral weight combine the two partial
    finals with those weights; a side without grades is left out.
    """
    own = [g for g in grades if g.subject_id == subject.id]
    if subject.written_weight is None or subject.oral_weight is None:
        return calculate_final_grade(own)
    parts = [
        (calculate_final_grade(g for g in own if g.type == "written"), subject.written_weight),
        (calculate_final_grade(g for g in own if g.type == "oral"), subject.oral_weight),
    ]
    parts = [(avg, w) for avg, w in parts if avg is not None and w > 0]
    if not parts:
        return None
    return sum(avg * w for avg, w in parts) / sum(w for _, w in parts)


def category_average(subjects: Iterable[Subject], grades: Iterable[Grade]) -> float | None:
    grades = list(grades)
    averages = [a for a in (subject_average(s, grades) for s in subjects) if a is not None]
    if not averages:
        return None
    return sum(averages) / len(averages)


def overall_average(
    subjects: Iterable[Subject],
    grades: Iterable[Grade],
    main_weight: float = DEFAULT_MAIN_WEIGHT,
    minor_weight: float = DEFAULT_MINOR_WEIGHT,
) -> float | None:
    """Average over all subjects, main subjects counting ``main_weight`` times."""
    grades = list(grades)
    weighted, total = 0.0, 0.0
    for subject in subjects:
        avg = subject_average(subject, grades)
        if avg is None:
            continue
        w = main_weight if subject.category == "main" else minor_weight
        weighted += avg * w
        total += w
    if total == 0:
        return None
    return weighted / total


def format_grade(value: float | None) -> str:
    return "-" if value is None else f"{value:.2f}"
