"""Data classes for the flashcard and scheduling domain model."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from vocab_srs.constants import DEFAULT_NEW_CARDS_PER_DAY, INITIAL_EASE_FACTOR
from vocab_srs.errors import IndexInvariantError


class CardType(str, Enum):
    WORD = "word"
    PHRASE = "phrase"
    SENTENCE = "sentence"


class ReviewRating(str, Enum):
    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"


class ReviewMode(str, Enum):
    FLASHCARD = "flashcard"
    QUICKPEEK = "quickpeek"


class CardStatus(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    MATURE = "mature"


@dataclass(frozen=True)
class CardFront:
    term: str
    phonetic: Optional[str] = None
    morphemes: list[str] = field(default_factory=list)
    example: Optional[str] = None
    example_cn: Optional[str] = None


@dataclass(frozen=True)
class CardBack:
    translation: Optional[str] = None
    explanation: Optional[str] = None
    explanation_cn: Optional[str] = None
    synonyms: list[str] = field(default_factory=list)
    antonyms: list[str] = field(default_factory=list)
    notes: Optional[str] = None


@dataclass(frozen=True)
class Card:
    id: str
    type: CardType
    front: CardFront
    created_at: datetime
    updated_at: datetime
    back: Optional[CardBack] = None
    tags: list[str] = field(default_factory=list)
    deleted: bool = False
    version: int = 1


@dataclass(frozen=True)
class SrsState:
    card_id: str
    due_at: datetime
    interval_days: int = 0
    ease_factor: float = INITIAL_EASE_FACTOR
    reps: int = 0
    lapses: int = 0
    last_review_at: Optional[datetime] = None


@dataclass(frozen=True)
class ReviewEvent:
    id: str
    card_id: str
    ts: datetime
    rating: ReviewRating
    mode: ReviewMode = ReviewMode.FLASHCARD
    duration_ms: Optional[int] = None


@dataclass(frozen=True)
class CardIndex:
    """Read-only view of every card and its scheduling state.

    ``due_cards`` holds ids with ``due_at <= now`` sorted by ``due_at``
    ascending; ``new_cards`` holds ids with ``reps == 0`` sorted by
    ``created_at`` ascending. The scheduler relies on both orderings
    without re-sorting; ``validate`` checks them.
    """

    cards: dict[str, Card] = field(default_factory=dict)
    srs_states: dict[str, SrsState] = field(default_factory=dict)
    due_cards: tuple[str, ...] = ()
    new_cards: tuple[str, ...] = ()

    def validate(self) -> None:
        """Raise IndexInvariantError if the index breaks its invariants."""
        if self.cards.keys() != self.srs_states.keys():
            missing = sorted(self.cards.keys() ^ self.srs_states.keys())
            raise IndexInvariantError(f"cards and srs_states disagree on ids: {missing}")

        self._check_sorted("due_cards", self.due_cards, lambda cid: self.srs_states[cid].due_at)
        self._check_sorted("new_cards", self.new_cards, lambda cid: self.cards[cid].created_at)

        for card_id in self.new_cards:
            if self.srs_states[card_id].reps != 0:
                raise IndexInvariantError(f"new_cards entry {card_id} has already been reviewed")

    def _check_sorted(self, name: str, ids: tuple[str, ...], key) -> None:
        if len(set(ids)) != len(ids):
            raise IndexInvariantError(f"{name} contains duplicate ids")
        previous = None
        for card_id in ids:
            if card_id not in self.cards:
                raise IndexInvariantError(f"{name} references unknown card {card_id}")
            value = key(card_id)
            if previous is not None and value < previous:
                raise IndexInvariantError(f"{name} is not sorted at card {card_id}")
            previous = value


@dataclass
class SchedulerOptions:
    new_cards_per_day: int = DEFAULT_NEW_CARDS_PER_DAY
    today_new_card_count: int = 0
    loop_mode: bool = False
    exclude_card_id: Optional[str] = None
    recent_card_ids: tuple[str, ...] = ()  # most recent first


@dataclass
class SchedulerStats:
    total: int = 0
    due: int = 0
    new_cards: int = 0
    learning: int = 0
    mature: int = 0
