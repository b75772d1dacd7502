from datetime import date, datetime, timedelta

import pytest

from notio.db import init_db
from notio.models import SrsState, StudyCard

TODAY = date(2024, 3, 20)


@pytest.fixture
def tmp_db(tmp_path):
    """Provide an initialized temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_notio.db")
    init_db(db_path)
    return db_path


def reviewed_card(card_id: str, interval: int, days_ago: int, repetitions: int = 2,
                  ease_factor: float = 2.5) -> StudyCard:
    """A card last reviewed ``days_ago`` days before TODAY."""
    last = datetime.combine(TODAY - timedelta(days=days_ago), datetime.min.time()).replace(hour=10)
    return StudyCard(
        id=card_id, term=f"term {card_id}", definition=f"definition {card_id}",
        srs=SrsState(interval=interval, ease_factor=ease_factor,
                     repetitions=repetitions, last_reviewed=last),
    )
