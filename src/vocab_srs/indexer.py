"""Rebuild the in-memory CardIndex by replaying the review log."""
import logging
from collections import defaultdict
from datetime import datetime
from typing import Iterable

from vocab_srs.models import Card, CardIndex, ReviewEvent, SrsState
from vocab_srs.sm2 import calculate_next_state, create_initial_srs_state

logger = logging.getLogger(__name__)


def latest_cards(cards: Iterable[Card]) -> dict[str, Card]:
    """Keep the highest version of each card id, dropping soft-deleted cards."""
    latest: dict[str, Card] = {}
    for card in cards:
        existing = latest.get(card.id)
        if existing is None or card.version > existing.version:
            latest[card.id] = card
    return {cid: card for cid, card in latest.items() if not card.deleted}


def replay_events(card_id: str, events: list[ReviewEvent], created_at: datetime) -> SrsState:
    state = create_initial_srs_state(card_id, created_at)
    for event in sorted(events, key=lambda e: e.ts):
        state = calculate_next_state(state, event.rating, event.ts)
    return state


def build_index(cards: Iterable[Card], events: Iterable[ReviewEvent], now: datetime) -> CardIndex:
    """Build a CardIndex from every stored card version and review event.

    Cards with ``reps == 0`` are new; a card never reviewed is due at its
    creation time. Reviewed cards are due once ``due_at <= now``.
    """
    live = latest_cards(cards)

    events_by_card: dict[str, list[ReviewEvent]] = defaultdict(list)
    for event in events:
        if event.card_id not in live:
            logger.debug("Ignoring review event %s for unknown card %s", event.id, event.card_id)
            continue
        events_by_card[event.card_id].append(event)

    srs_states: dict[str, SrsState] = {}
    due: list[str] = []
    new: list[str] = []
    for card_id, card in live.items():
        state = replay_events(card_id, events_by_card.get(card_id, []), card.created_at)
        srs_states[card_id] = state
        # reps == 0 also covers cards reset by a failed review
        if state.reps == 0:
            new.append(card_id)
        elif state.due_at <= now:
            due.append(card_id)

    due.sort(key=lambda cid: (srs_states[cid].due_at, cid))
    new.sort(key=lambda cid: (live[cid].created_at, cid))

    index = CardIndex(
        cards=live,
        srs_states=srs_states,
        due_cards=tuple(due),
        new_cards=tuple(new),
    )
    if __debug__:
        index.validate()
    logger.debug("Built index: %d cards, %d due, %d new", len(live), len(due), len(new))
    return index


def get_due_cards(index: CardIndex, now: datetime) -> list[Card]:
    due = [
        cid for cid, state in index.srs_states.items()
        if cid in index.cards and state.reps > 0 and state.due_at <= now
    ]
    due.sort(key=lambda cid: index.srs_states[cid].due_at)
    return [index.cards[cid] for cid in due]


def get_new_cards(index: CardIndex) -> list[Card]:
    return [index.cards[cid] for cid in index.new_cards if cid in index.cards]


def count_new_cards_today(events: Iterable[ReviewEvent], day_start: datetime) -> int:
    """Count cards whose first-ever review happened at or after ``day_start``."""
    first_seen: dict[str, datetime] = {}
    for event in events:
        seen = first_seen.get(event.card_id)
        if seen is None or event.ts < seen:
            first_seen[event.card_id] = event.ts
    return sum(1 for ts in first_seen.values() if ts >= day_start)
