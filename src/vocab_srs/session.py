"""Study session: ties the store, the index and the scheduler together."""
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from vocab_srs.config import Settings
from vocab_srs.constants import MAX_RECENT_CARDS
from vocab_srs.importer import card_from_entry
from vocab_srs.indexer import build_index, count_new_cards_today
from vocab_srs.models import (
    Card,
    CardIndex,
    ReviewEvent,
    ReviewMode,
    ReviewRating,
    SchedulerOptions,
    SrsState,
)
from vocab_srs.scheduler import get_next_card
from vocab_srs.storage import append_card, append_event, read_cards, read_events, write_snapshot

logger = logging.getLogger(__name__)


def start_of_day(now: datetime) -> datetime:
    utc = now.astimezone(timezone.utc)
    return utc.replace(hour=0, minute=0, second=0, microsecond=0)


class StudySession:
    """Tracks what was just shown so the scheduler can avoid repeats."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.recent_card_ids: list[str] = []
        self.last_card_id: Optional[str] = None
        self.index = CardIndex()
        self.events: list[ReviewEvent] = []

    @property
    def data_dir(self) -> str:
        return self.settings.data_dir

    def refresh(self, now: datetime) -> CardIndex:
        self.events = read_events(self.data_dir)
        self.index = build_index(read_cards(self.data_dir), self.events, now)
        write_snapshot(self.data_dir, self.index, now)
        return self.index

    def options(self, now: datetime) -> SchedulerOptions:
        return SchedulerOptions(
            new_cards_per_day=self.settings.new_cards_per_day,
            today_new_card_count=count_new_cards_today(self.events, start_of_day(now)),
            loop_mode=self.settings.loop_mode,
            exclude_card_id=self.last_card_id,
            recent_card_ids=tuple(self.recent_card_ids),
        )

    def next_card(self, now: datetime) -> Optional[Card]:
        self.refresh(now)
        card = get_next_card(self.index, now, self.options(now))
        if card is None and self.last_card_id is not None:
            # The excluded card may be the only one left.
            card = get_next_card(self.index, now, self._options_without_exclusion(now))
        return card

    def _options_without_exclusion(self, now: datetime) -> SchedulerOptions:
        options = self.options(now)
        options.exclude_card_id = None
        return options

    def state_of(self, card_id: str) -> Optional[SrsState]:
        return self.index.srs_states.get(card_id)

    def answer(
        self,
        card_id: str,
        rating: ReviewRating,
        now: datetime,
        duration_ms: Optional[int] = None,
        mode: ReviewMode = ReviewMode.FLASHCARD,
    ) -> ReviewEvent:
        event = ReviewEvent(
            id=str(uuid.uuid4()),
            card_id=card_id,
            ts=now,
            rating=ReviewRating(rating),
            mode=mode,
            duration_ms=duration_ms,
        )
        append_event(self.data_dir, event)
        self.last_card_id = card_id
        if card_id in self.recent_card_ids:
            self.recent_card_ids.remove(card_id)
        self.recent_card_ids.insert(0, card_id)
        del self.recent_card_ids[MAX_RECENT_CARDS:]
        logger.debug("Recorded %s for card %s", event.rating.value, card_id)
        return event

    def add_card(self, term: str, now: datetime, **fields) -> Card:
        card = card_from_entry({"term": term, **fields}, now)
        append_card(self.data_dir, card)
        logger.info("Added card %s (%s)", card.front.term, card.id)
        return card
