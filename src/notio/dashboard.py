"""Learning statistics and grade overview."""
from datetime import date

from notio.db import get_connection
from notio.flashcards import card_from_row
from notio.grades import (
    DEFAULT_MAIN_WEIGHT, DEFAULT_MINOR_WEIGHT, category_average, list_grades, list_subjects,
    overall_average, subject_average,
)
from notio.srs import is_due
from notio.studysets import get_setting


def get_grade_label(avg: float | None) -> str:
    if avg is None:
        return "NO GRADES"
    if avg < 1.5:
        return "VERY GOOD"
    elif avg < 2.5:
        return "GOOD"
    elif avg < 3.5:
        return "SATISFACTORY"
    elif avg < 4.5:
        return "SUFFICIENT"
    return "AT RISK"


def get_grade_color(avg: float | None) -> str:
    if avg is None:
        return "dim"
    if avg < 2.5:
        return "green"
    elif avg < 3.5:
        return "yellow"
    elif avg < 4.5:
        return "dark_orange"
    return "red"


def _retention(conn) -> float:
    row = conn.execute(
        "SELECT COUNT(*) as t, SUM(CASE WHEN performance != 'again' THEN 1 ELSE 0 END) as c FROM card_reviews"
    ).fetchone()
    if not row["t"]:
        return 0.0
    return round((row["c"] / row["t"]) * 100, 1)


def get_learning_stats(db_path: str, today: date | None = None) -> dict:
    conn = get_connection(db_path)
    sets = conn.execute("SELECT COUNT(*) FROM study_sets").fetchone()[0]
    rows = conn.execute("SELECT * FROM study_cards").fetchall()
    reviews = conn.execute("SELECT COUNT(*) FROM card_reviews").fetchone()[0]
    retention = _retention(conn)
    conn.close()
    cards = [card_from_row(r) for r in rows]
    return {
        "study_sets": sets,
        "cards": len(cards),
        "new_cards": sum(1 for c in cards if c.is_new),
        "due_cards": sum(1 for c in cards if not c.is_new and is_due(c, today)),
        "reviews": reviews,
        "retention": retention,
    }


def get_subject_weights(db_path: str) -> tuple[float, float]:
    main = float(get_setting(db_path, "main_subject_weight", str(DEFAULT_MAIN_WEIGHT)))
    minor = float(get_setting(db_path, "minor_subject_weight", str(DEFAULT_MINOR_WEIGHT)))
    return main, minor


def get_subject_overview(db_path: str, grade_level: int) -> dict:
    subjects = list_subjects(db_path, grade_level)
    grades = list_grades(db_path)
    main_weight, minor_weight = get_subject_weights(db_path)
    rows = []
    for s in subjects:
        avg = subject_average(s, grades)
        gap = None
        if avg is not None and s.target_grade is not None:
            gap = round(avg - s.target_grade, 2)
        rows.append({
            "subject_id": s.id,
            "name": s.name,
            "category": s.category,
            "average": avg,
            "target_grade": s.target_grade,
            "gap": gap,
            "label": get_grade_label(avg),
        })
    return {
        "subjects": rows,
        "overall": overall_average(subjects, grades, main_weight, minor_weight),
        "main": category_average([s for s in subjects if s.category == "main"], grades),
        "minor": category_average([s for s in subjects if s.category == "minor"], grades),
    }
