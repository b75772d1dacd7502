"""SM-2 style spaced repetition scheduling for study cards."""
import dataclasses
from datetime import date, datetime, timedelta
from enum import Enum

from notio.models import SrsState, StudyCard, Unreviewed

INITIAL_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
LAPSE_INTERVAL = 1
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6
AGAIN_PENALTY = 0.20
EASY_BONUS = 0.15
EASY_INTERVAL_BONUS = 1.3


class Performance(str, Enum):
    AGAIN = "again"
    GOOD = "good"
    EASY = "easy"


def compute_due_date(card: StudyCard) -> date:
    """Return the calendar day a card becomes due.

    Unreviewed cards return ``date.min`` so they compare as due on any day.
    """
    if isinstance(card.srs, Unreviewed):
        return date.min
    return card.srs.last_reviewed.date() + timedelta(days=card.srs.interval)


def is_due(card: StudyCard, today: date | None = None) -> bool:
    if today is None:
        today = date.today()
    return compute_due_date(card) <= today


def update_srs_data(card: StudyCard, performance, now: datetime | None = None) -> SrsState:
    """Calculate the card's next scheduling state.

    Args:
        card: Card whose current state is updated. An unreviewed card starts
            from repetitions=0, interval=0, ease factor 2.5.
        performance: ``again``, ``good`` or ``easy`` (str or Performance).
        now: Review timestamp, defaults to the current time.

    Returns:
        The new SrsState. The card itself is not modified.
    """
    performance = Performance(performance)
    if now is None:
        now = datetime.now()

    if isinstance(card.srs, Unreviewed):
        repetitions, interval, ease_factor = 0, 0, INITIAL_EASE_FACTOR
    else:
        repetitions = card.srs.repetitions
        interval = card.srs.interval
        ease_factor = card.srs.ease_factor

    if performance is Performance.AGAIN:
        new_repetitions = 0
        new_interval = LAPSE_INTERVAL
        new_ef = ease_factor - AGAIN_PENALTY
    else:
        new_repetitions = repetitions + 1
        if new_repetitions == 1:
            new_interval = FIRST_INTERVAL
        elif new_repetitions == 2:
            new_interval = SECOND_INTERVAL
        else:
            grown = interval * ease_factor
            if performance is Performance.EASY:
                grown *= EASY_INTERVAL_BONUS
            new_interval = max(1, round(grown))
        new_ef = ease_factor + EASY_BONUS if performance is Performance.EASY else ease_factor

    new_ef = max(MIN_EASE_FACTOR, new_ef)

    return SrsState(
        interval=new_interval,
        ease_factor=round(new_ef, 2),
        repetitions=new_repetitions,
        last_reviewed=now,
    )


def review_card(card: StudyCard, performance, now: datetime | None = None) -> StudyCard:
    """Return a copy of ``card`` carrying its post-review state."""
    return dataclasses.replace(card, srs=update_srs_data(card, performance, now))


def srs_status(card: StudyCard, today: date | None = None) -> str:
    """Classify a card as "new", "due" or "learned" for listings."""
    if isinstance(card.srs, Unreviewed) or card.srs.repetitions == 0:
        return "new"
    if is_due(card, today):
        return "due"
    return "learned"
