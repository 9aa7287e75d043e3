"""Next-card selection using an Ebbinghaus forgetting curve.

Everything here is a pure function over an already-built CardIndex: nothing
is written back and nothing is read from disk.
"""
import math
from datetime import datetime
from typing import Iterable, Optional

from vocab_srs.constants import (
    DAY,
    DECAY_CONSTANT,
    DUE_BASE_PRIORITY,
    EASE_WEIGHT,
    LAPSE_WEIGHT,
    MATURE_INTERVAL_DAYS,
    MAX_EASE_FACTOR,
    MAX_OVERDUE_RATIO,
    MIN_STABILITY_DAYS,
    NOT_DUE_BASE_PRIORITY,
    NOT_DUE_DAY_PENALTY,
    OVERDUE_DAY_WEIGHT,
    OVERDUE_RATIO_WEIGHT,
    RECENCY_PENALTY,
    RETENTION_WEIGHT,
    TARGET_RETENTION,
)
from vocab_srs.models import (
    Card,
    CardIndex,
    CardStatus,
    SchedulerOptions,
    SchedulerStats,
    SrsState,
)


def card_status(state: Optional[SrsState]) -> CardStatus:
    if state is None or state.reps == 0:
        return CardStatus.NEW
    if state.interval_days >= MATURE_INTERVAL_DAYS:
        return CardStatus.MATURE
    return CardStatus.LEARNING


def _days_between(start: datetime, end: datetime) -> float:
    return (end - start) / DAY


def calculate_retention(state: SrsState, now: datetime) -> float:
    """Estimate the probability of recalling a card at ``now``.

    R = exp(-k * t / S), where t is the time elapsed since the card fell due
    and S is its last interval in days. A card at its due instant scores 1.0,
    one overdue by a full interval scores about 0.37. New cards score 0.
    """
    if state.reps == 0:
        return 0.0

    elapsed_days = _days_between(state.due_at, now)
    if elapsed_days <= 0:
        return 1.0
    stability = max(float(state.interval_days), MIN_STABILITY_DAYS)
    retention = math.exp(-DECAY_CONSTANT * elapsed_days / stability)
    return max(0.0, min(1.0, retention))


def calculate_priority(
    state: SrsState,
    now: datetime,
    recent_card_ids: Iterable[str] = (),
) -> float:
    """Score how urgently a card should be shown; higher means sooner.

    Only meaningful relative to other cards scored with the same ``now``.
    """
    priority = 0.0

    overdue_days = _days_between(state.due_at, now)
    if overdue_days >= 0:
        interval = max(float(state.interval_days), MIN_STABILITY_DAYS)
        priority += DUE_BASE_PRIORITY + overdue_days * OVERDUE_DAY_WEIGHT
        priority += min(overdue_days / interval, MAX_OVERDUE_RATIO) * OVERDUE_RATIO_WEIGHT
    else:
        priority += max(0.0, NOT_DUE_BASE_PRIORITY + overdue_days * NOT_DUE_DAY_PENALTY)

    retention = calculate_retention(state, now)
    if state.reps > 0 and retention < TARGET_RETENTION:
        priority += (TARGET_RETENTION - retention) * RETENTION_WEIGHT

    priority += LAPSE_WEIGHT * math.log1p(max(state.lapses, 0))
    priority += (MAX_EASE_FACTOR - state.ease_factor) * EASE_WEIGHT

    if state.card_id in recent_card_ids:
        priority -= RECENCY_PENALTY

    return priority


def _pick_due(index: CardIndex, now: datetime, options: SchedulerOptions) -> Optional[Card]:
    # due_cards is sorted earliest first, so the first eligible entry sets the
    # winning due instant; priority only orders cards due at that same instant.
    best = None
    best_priority = 0.0
    for card_id in index.due_cards:
        if card_id == options.exclude_card_id:
            continue
        card = index.cards.get(card_id)
        state = index.srs_states.get(card_id)
        if card is None or state is None or state.reps == 0 or state.due_at > now:
            continue
        if best is not None and state.due_at != best[1].due_at:
            break
        priority = calculate_priority(state, now, options.recent_card_ids)
        if best is None or priority > best_priority:
            best = (card, state)
            best_priority = priority
    return best[0] if best else None


def _pick_new(index: CardIndex, options: SchedulerOptions) -> Optional[Card]:
    if options.today_new_card_count >= options.new_cards_per_day:
        return None
    for card_id in index.new_cards:
        if card_id == options.exclude_card_id:
            continue
        card = index.cards.get(card_id)
        state = index.srs_states.get(card_id)
        if card is not None and state is not None and state.reps == 0:
            return card
    return None


def _pick_loop(index: CardIndex, now: datetime, options: SchedulerOptions) -> Optional[Card]:
    for card_id in index.due_cards:
        if card_id == options.exclude_card_id:
            continue
        card = index.cards.get(card_id)
        state = index.srs_states.get(card_id)
        if card is not None and state is not None and state.reps > 0:
            return card

    # Nothing left in the due list: recycle reviewed cards by priority.
    # New cards are never recycled so the daily quota still holds.
    best = None
    best_priority = 0.0
    for card_id, card in index.cards.items():
        if card_id == options.exclude_card_id:
            continue
        state = index.srs_states.get(card_id)
        if state is None or state.reps == 0:
            continue
        priority = calculate_priority(state, now, options.recent_card_ids)
        if best is None or priority > best_priority:
            best = card
            best_priority = priority
    return best


def get_next_card(
    index: CardIndex,
    now: datetime,
    options: Optional[SchedulerOptions] = None,
) -> Optional[Card]:
    """Pick the card to show next, or None when nothing is available.

    Order of precedence:
    1. Due cards, earliest due first, priority breaking ties.
    2. New cards, oldest first, while today's quota is not used up.
    3. In loop mode, cards from the due list regardless of due time,
       then any reviewed card by priority.
    """
    if options is None:
        options = SchedulerOptions()

    card = _pick_due(index, now, options)
    if card is not None:
        return card

    card = _pick_new(index, options)
    if card is not None:
        return card

    if options.loop_mode:
        return _pick_loop(index, now, options)

    return None


def get_stats(index: CardIndex, now: datetime) -> SchedulerStats:
    stats = SchedulerStats()
    for card_id in index.cards:
        stats.total += 1
        state = index.srs_states.get(card_id)
        status = card_status(state)
        if status is CardStatus.NEW:
            stats.new_cards += 1
            continue
        if status is CardStatus.MATURE:
            stats.mature += 1
        else:
            stats.learning += 1
        if state.due_at <= now:
            stats.due += 1
    return stats
