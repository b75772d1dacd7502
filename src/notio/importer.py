"""Card import from files and CSV export/import of grades."""
import csv
import io
import json
import math
from pathlib import Path

from notio.db import StudySetNotFoundError, get_connection
from notio.flashcards import insert_card
from notio.grades import CATEGORIES, GRADE_TYPES, MAX_GRADE, MIN_GRADE, list_grades, list_subjects
from notio.models import Grade, Subject

GRADE_CSV_COLUMNS = ["subject", "category", "grade_level", "type", "name", "value", "weight", "date"]


def _split_line(line: str) -> tuple[str, str] | None:
    for sep in ("\t", " - "):
        if sep in line:
            term, definition = line.split(sep, 1)
            term, definition = term.strip(), definition.strip()
            if term and definition:
                return term, definition
            return None
    return None


def read_card_pairs(file_path: str) -> list[tuple[str, str]]:
    """Read (term, definition) pairs from a .txt/.tsv, .csv or .json file."""
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            return []
        pairs = []
        for item in data:
            if not isinstance(item, dict):
                continue
            term, definition = item.get("term"), item.get("definition")
            if term is None or definition is None:
                continue
            term, definition = str(term).strip(), str(definition).strip()
            if term and definition:
                pairs.append((term, definition))
        return pairs
    elif suffix == ".csv":
        with path.open(newline="", encoding="utf-8-sig") as fh:
            rows = [row for row in csv.reader(fh) if len(row) >= 2]
        if rows and [c.strip().lower() for c in rows[0][:2]] == ["term", "definition"]:
            rows = rows[1:]
        return [
            (row[0].strip(), row[1].strip())
            for row in rows
            if row[0].strip() and row[1].strip()
        ]
    else:
        # Plain text: one card per line
        pairs = []
        for line in path.read_text(encoding="utf-8").splitlines():
            pair = _split_line(line)
            if pair:
                pairs.append(pair)
        return pairs


def import_cards(db_path: str, set_id: str, file_path: str) -> int:
    """Append the cards found in a file to a study set. Returns the count."""
    pairs = read_card_pairs(file_path)
    conn = get_connection(db_path)
    try:
        if not conn.execute("SELECT 1 FROM study_sets WHERE id = ?", (set_id,)).fetchone():
            raise StudySetNotFoundError(set_id)
        with conn:
            for term, definition in pairs:
                insert_card(conn, set_id, term, definition)
    finally:
        conn.close()
    return len(pairs)


def export_grades_csv(subjects: list[Subject], grades: list[Grade]) -> str:
    by_id = {s.id: s for s in subjects}
    out = io.StringIO()
    writer = csv.writer(out)
    writer.writerow(GRADE_CSV_COLUMNS)
    for g in grades:
        subject = by_id.get(g.subject_id)
        if subject is None:
            continue
        writer.writerow([
            subject.name, subject.category, subject.grade_level,
            g.type, g.name, g.value, g.weight, g.date,
        ])
    return out.getvalue()


def _parse_grade_row(row: dict) -> dict | None:
    try:
        parsed = {
            "subject": row["subject"].strip(),
            "category": (row.get("category") or "main").strip(),
            "type": row["type"].strip(),
            "name": (row.get("name") or "").strip(),
            "value": float(row["value"]),
            "weight": float(row.get("weight") or 1.0),
            "date": row["date"].strip(),
        }
    except (KeyError, AttributeError, ValueError):
        return None
    if (not parsed["subject"] or parsed["category"] not in CATEGORIES
            or parsed["type"] not in GRADE_TYPES
            or not math.isfinite(parsed["value"]) or not math.isfinite(parsed["weight"])
            or not MIN_GRADE <= parsed["value"] <= MAX_GRADE
            or parsed["weight"] <= 0 or not parsed["date"]):
        return None
    return parsed


def import_grades_csv(db_path: str, text: str, grade_level: int) -> dict:
    """Import grades exported by export_grades_csv into ``grade_level``.

    Subjects are matched by name and created when missing. Malformed rows and
    grades already present (same subject, type, value, weight and date) are
    skipped.
    """
    subjects = {s.name.lower(): s for s in list_subjects(db_path, grade_level)}
    existing = {
        (g.subject_id, g.type, g.value, g.weight, g.date)
        for g in list_grades(db_path)
    }
    imported = skipped = 0
    conn = get_connection(db_path)
    try:
        with conn:
            for row in csv.DictReader(io.StringIO(text.lstrip("\ufeff"))):
                parsed = _parse_grade_row(row)
                if parsed is None:
                    skipped += 1
                    continue
                subject = subjects.get(parsed["subject"].lower())
                if subject is None:
                    cur = conn.execute(
                        "INSERT INTO subjects (name, category, grade_level) VALUES (?, ?, ?)",
                        (parsed["subject"], parsed["category"], grade_level),
                    )
                    subject = Subject(
                        id=cur.lastrowid, name=parsed["subject"],
                        category=parsed["category"], grade_level=grade_level,
                    )
                    subjects[subject.name.lower()] = subject
                key = (subject.id, parsed["type"], parsed["value"], parsed["weight"], parsed["date"])
                if key in existing:
                    skipped += 1
                    continue
                conn.execute(
                    """INSERT INTO grades (subject_id, type, name, value, weight, date, notes)
                    VALUES (?, ?, ?, ?, ?, ?, '')""",
                    (subject.id, parsed["type"], parsed["name"], parsed["value"],
                     parsed["weight"], parsed["date"]),
                )
                existing.add(key)
                imported += 1
    finally:
        conn.close()
    return {"imported": imported, "skipped": skipped}
