"""Study session selection built on the SRS due dates.

A session is filled in three tiers: overdue cards (most overdue first), then
never-studied cards in set order, then not-yet-due cards with the shortest
interval. An optional ``TextGenerator`` may propose a title and its own card
selection; its proposal is advisory and the deterministic selection is used
whenever it fails or proposes nothing usable.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol, Sequence

from notio.models import StudyCard, Unreviewed
from notio.srs import compute_due_date

logger = logging.getLogger(__name__)

DEFAULT_MAX_CARDS = 15
FALLBACK_TITLE = "Today's session"


@dataclass
class StudySession:
    card_ids: list[str]
    title: str


@dataclass
class SessionSuggestion:
    card_ids: list[str] = field(default_factory=list)
    title: str = ""


class TextGenerator(Protocol):
    def suggest_session(
        self, cards: Sequence[StudyCard], max_cards: int, today: date,
    ) -> SessionSuggestion:
        ...


class StaticTextGenerator:
    """Proposes a fixed title and leaves card selection to the builder."""

    def __init__(self, title: str = FALLBACK_TITLE):
        self.title = title

    def suggest_session(
        self, cards: Sequence[StudyCard], max_cards: int, today: date,
    ) -> SessionSuggestion:
        return SessionSuggestion(title=self.title)


def select_session_cards(
    cards: Sequence[StudyCard], max_cards: int = DEFAULT_MAX_CARDS, today: date | None = None,
) -> list[str]:
    if today is None:
        today = date.today()
    overdue, new, upcoming = [], [], []
    for card in cards:
        if isinstance(card.srs, Unreviewed):
            new.append(card)
        elif compute_due_date(card) <= today:
            overdue.append(card)
        else:
            upcoming.append(card)
    overdue.sort(key=lambda c: (compute_due_date(c), c.id))
    upcoming.sort(key=lambda c: (c.srs.interval, c.id))
    ordered = overdue + new + upcoming
    return [c.id for c in ordered[:max_cards]]


def _validate_suggestion(
    suggestion: SessionSuggestion, cards: Sequence[StudyCard], max_cards: int,
) -> list[str]:
    known = {c.id for c in cards}
    accepted = []
    for card_id in suggestion.card_ids:
        if card_id in known and card_id not in accepted:
            accepted.append(card_id)
    return accepted[:max_cards]


def build_session(
    cards: Sequence[StudyCard],
    max_cards: int = DEFAULT_MAX_CARDS,
    generator: TextGenerator | None = None,
    today: date | None = None,
) -> StudySession:
    """Select and order the cards for the next study session.

    Never raises because of the generator: its failures are logged and the
    deterministic selection and title are used instead.
    """
    if max_cards < 1:
        raise ValueError(f"max_cards must be a positive integer, got {max_cards}")
    if not cards:
        return StudySession(card_ids=[], title=FALLBACK_TITLE)
    if today is None:
        today = date.today()

    selected = select_session_cards(cards, max_cards, today)
    if generator is None:
        return StudySession(card_ids=selected, title=FALLBACK_TITLE)

    try:
        suggestion = generator.suggest_session(cards, max_cards, today)
    except Exception:
        logger.warning("Session generator failed, using deterministic selection", exc_info=True)
        return StudySession(card_ids=selected, title=FALLBACK_TITLE)
    if suggestion is None:
        suggestion = SessionSuggestion()

    card_ids = _validate_suggestion(suggestion, cards, max_cards)
    if not card_ids:
        if suggestion.card_ids:
            logger.info("Discarded %d unknown suggested card ids", len(suggestion.card_ids))
        card_ids = selected
    title = (suggestion.title or "").strip() or FALLBACK_TITLE
    return StudySession(card_ids=card_ids, title=title)
