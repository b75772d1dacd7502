"""Data classes for the Notio domain model."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union


@dataclass(frozen=True)
class Unreviewed:
    """Scheduling marker for a card that has never been studied."""


UNREVIEWED = Unreviewed()


@dataclass(frozen=True)
class SrsState:
    interval: int
    ease_factor: float
    repetitions: int
    last_reviewed: datetime


SrsData = Union[Unreviewed, SrsState]


@dataclass
class StudyCard:
    id: str
    term: str
    definition: str
    srs: SrsData = UNREVIEWED

    @property
    def is_new(self) -> bool:
        return isinstance(self.srs, Unreviewed)


@dataclass
class StudySet:
    id: str
    title: str
    description: str = ""
    subject_id: Optional[int] = None
    cards: list[StudyCard] = field(default_factory=list)
    created_at: Optional[str] = None


@dataclass
class Subject:
    id: int
    name: str
    category: str  # "main" or "minor"
    grade_level: int
    written_weight: Optional[float] = None
    oral_weight: Optional[float] = None
    target_grade: Optional[float] = None


@dataclass
class Grade:
    id: int
    subject_id: int
    type: str  # "written" or "oral"
    value: float
    weight: float
    date: str
    name: str = ""
    notes: str = ""
