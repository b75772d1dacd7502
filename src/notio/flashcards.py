"""Flashcard storage and review recording with SRS scheduling."""
import logging
import sqlite3
import uuid
from datetime import date, datetime
from typing import Mapping

from notio.db import CardNotFoundError, StudySetNotFoundError, get_connection
from notio.models import UNREVIEWED, SrsState, StudyCard
from notio.srs import Performance, is_due, srs_status, update_srs_data

logger = logging.getLogger(__name__)


def card_from_row(row: sqlite3.Row) -> StudyCard:
    if row["last_reviewed"] is None:
        srs = UNREVIEWED
    else:
        srs = SrsState(
            interval=row["interval"],
            ease_factor=row["ease_factor"],
            repetitions=row["repetitions"],
            last_reviewed=datetime.fromisoformat(row["last_reviewed"]),
        )
    return StudyCard(id=row["id"], term=row["term"], definition=row["definition"], srs=srs)


def insert_card(conn: sqlite3.Connection, set_id: str, term: str, definition: str) -> StudyCard:
    position = conn.execute(
        "SELECT COALESCE(MAX(position), -1) + 1 FROM study_cards WHERE study_set_id = ?",
        (set_id,),
    ).fetchone()[0]
    card_id = uuid.uuid4().hex
    conn.execute(
        "INSERT INTO study_cards (id, study_set_id, position, term, definition) VALUES (?, ?, ?, ?, ?)",
        (card_id, set_id, position, term, definition),
    )
    return StudyCard(id=card_id, term=term, definition=definition)


def add_card(db_path: str, set_id: str, term: str, definition: str) -> StudyCard:
    term, definition = term.strip(), definition.strip()
    if not term or not definition:
        raise ValueError("Term and definition must not be empty")
    conn = get_connection(db_path)
    try:
        exists = conn.execute("SELECT 1 FROM study_sets WHERE id = ?", (set_id,)).fetchone()
        if not exists:
            raise StudySetNotFoundError(set_id)
        with conn:
            card = insert_card(conn, set_id, term, definition)
    finally:
        conn.close()
    return card


def get_cards(db_path: str, set_id: str) -> list[StudyCard]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM study_cards WHERE study_set_id = ? ORDER BY position",
        (set_id,),
    ).fetchall()
    conn.close()
    return [card_from_row(r) for r in rows]


def get_card(db_path: str, card_id: str) -> StudyCard:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM study_cards WHERE id = ?", (card_id,)).fetchone()
    conn.close()
    if row is None:
        raise CardNotFoundError(card_id)
    return card_from_row(row)


def update_card_content(db_path: str, card_id: str, term: str, definition: str) -> None:
    term, definition = term.strip(), definition.strip()
    if not term or not definition:
        raise ValueError("Term and definition must not be empty")
    conn = get_connection(db_path)
    with conn:
        cur = conn.execute(
            "UPDATE study_cards SET term = ?, definition = ? WHERE id = ?",
            (term, definition, card_id),
        )
    conn.close()
    if cur.rowcount == 0:
        raise CardNotFoundError(card_id)


def delete_card(db_path: str, card_id: str) -> None:
    conn = get_connection(db_path)
    with conn:
        cur = conn.execute("DELETE FROM study_cards WHERE id = ?", (card_id,))
    conn.close()
    if cur.rowcount == 0:
        raise CardNotFoundError(card_id)


def get_due_cards(db_path: str, set_id: str, today: date | None = None) -> list[StudyCard]:
    """New and overdue cards of a set, in set order."""
    return [c for c in get_cards(db_path, set_id) if is_due(c, today)]


def _write_state(conn: sqlite3.Connection, card_id: str, state: SrsState) -> int:
    cur = conn.execute(
        """UPDATE study_cards SET interval=?, ease_factor=?, repetitions=?, last_reviewed=?
        WHERE id=?""",
        (state.interval, state.ease_factor, state.repetitions,
         state.last_reviewed.isoformat(), card_id),
    )
    return cur.rowcount


def save_srs_updates(db_path: str, updates: Mapping[str, SrsState]) -> int:
    """Replace the scheduling state of the given cards in one transaction.

    Term and definition are left untouched. If any id is unknown nothing is
    written and CardNotFoundError is raised.
    """
    conn = get_connection(db_path)
    try:
        with conn:
            for card_id, state in updates.items():
                if _write_state(conn, card_id, state) == 0:
                    raise CardNotFoundError(card_id)
    finally:
        conn.close()
    logger.debug("Saved SRS state for %d cards", len(updates))
    return len(updates)


def record_card_review(
    db_path: str, card_id: str, performance, now: datetime | None = None,
) -> SrsState:
    """Apply one review to a stored card and log it in the review history."""
    performance = Performance(performance)
    conn = get_connection(db_path)
    try:
        with conn:
            row = conn.execute("SELECT * FROM study_cards WHERE id = ?", (card_id,)).fetchone()
            if row is None:
                raise CardNotFoundError(card_id)
            state = update_srs_data(card_from_row(row), performance, now)
            _write_state(conn, card_id, state)
            conn.execute(
                "INSERT INTO card_reviews (card_id, performance, interval, reviewed_at) VALUES (?, ?, ?, ?)",
                (card_id, performance.value, state.interval, state.last_reviewed.isoformat()),
            )
    finally:
        conn.close()
    logger.debug("Card %s reviewed as %s, next in %d days", card_id, performance.value, state.interval)
    return state


def get_status_counts(db_path: str, set_id: str, today: date | None = None) -> dict:
    counts = {"new": 0, "due": 0, "learned": 0}
    for card in get_cards(db_path, set_id):
        counts[srs_status(card, today)] += 1
    return counts
