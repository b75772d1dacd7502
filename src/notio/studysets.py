"""Study set management and user settings."""
import logging
import uuid
from datetime import datetime
from typing import Iterable

from notio.db import StudySetNotFoundError, get_connection
from notio.flashcards import get_cards, insert_card
from notio.models import StudySet

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def _check_title(title: str) -> str:
    title = title.strip()
    if not title:
        raise ValueError("Title must not be empty")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValueError(f"Title must be at most {MAX_TITLE_LENGTH} characters")
    return title


def _check_description(description: str) -> str:
    description = (description or "").strip()
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValueError(f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters")
    return description


def create_study_set(
    db_path: str,
    title: str,
    cards: Iterable[tuple[str, str]],
    description: str = "",
    subject_id: int | None = None,
) -> StudySet:
    """Create a study set with its initial (term, definition) cards."""
    title = _check_title(title)
    description = _check_description(description)
    pairs = [(term.strip(), definition.strip()) for term, definition in cards]
    if not pairs:
        raise ValueError("A study set needs at least one card")
    if any(not term or not definition for term, definition in pairs):
        raise ValueError("Term and definition must not be empty")

    set_id = uuid.uuid4().hex
    created_at = datetime.now().isoformat()
    conn = get_connection(db_path)
    try:
        with conn:
            conn.execute(
                "INSERT INTO study_sets (id, title, description, subject_id, created_at) VALUES (?, ?, ?, ?, ?)",
                (set_id, title, description, subject_id, created_at),
            )
            created = [insert_card(conn, set_id, term, definition) for term, definition in pairs]
    finally:
        conn.close()
    logger.debug("Created study set %s with %d cards", set_id, len(created))
    return StudySet(
        id=set_id, title=title, description=description,
        subject_id=subject_id, cards=created, created_at=created_at,
    )


def _set_from_row(db_path: str, row) -> StudySet:
    return StudySet(
        id=row["id"],
        title=row["title"],
        description=row["description"] or "",
        subject_id=row["subject_id"],
        cards=get_cards(db_path, row["id"]),
        created_at=row["created_at"],
    )


def get_study_set(db_path: str, set_id: str) -> StudySet:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM study_sets WHERE id = ?", (set_id,)).fetchone()
    conn.close()
    if row is None:
        raise StudySetNotFoundError(set_id)
    return _set_from_row(db_path, row)


def list_study_sets(db_path: str, subject_id: int | None = None) -> list[StudySet]:
    conn = get_connection(db_path)
    if subject_id is None:
        rows = conn.execute("SELECT * FROM study_sets ORDER BY created_at, title").fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM study_sets WHERE subject_id = ? ORDER BY created_at, title",
            (subject_id,),
        ).fetchall()
    conn.close()
    return [_set_from_row(db_path, r) for r in rows]


def update_study_set(
    db_path: str, set_id: str, title: str | None = None, description: str | None = None,
) -> StudySet:
    current = get_study_set(db_path, set_id)
    new_title = _check_title(title) if title is not None else current.title
    new_description = _check_description(description) if description is not None else current.description
    conn = get_connection(db_path)
    conn.execute(
        "UPDATE study_sets SET title = ?, description = ? WHERE id = ?",
        (new_title, new_description, set_id),
    )
    conn.commit()
    conn.close()
    return get_study_set(db_path, set_id)


def delete_study_set(db_path: str, set_id: str) -> None:
    """Delete a set together with its cards and their review history."""
    conn = get_connection(db_path)
    with conn:
        cur = conn.execute("DELETE FROM study_sets WHERE id = ?", (set_id,))
    conn.close()
    if cur.rowcount == 0:
        raise StudySetNotFoundError(set_id)
