"""Dashboard statistics over the card index and review history."""
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

from vocab_srs.constants import (
    INITIAL_EASE_FACTOR,
    RETENTION_HISTORY_WINDOW,
    RETENTION_ROLLING_DAYS,
    REVIEWS_PER_DAY_WINDOW,
)
from vocab_srs.models import CardIndex, CardType, ReviewEvent, ReviewRating
from vocab_srs.scheduler import get_stats

POSITIVE_RATINGS = {ReviewRating.GOOD, ReviewRating.EASY}


@dataclass
class DashboardStats:
    total_cards: int = 0
    due_cards: int = 0
    new_cards: int = 0
    learning_cards: int = 0
    mature_cards: int = 0
    total_reviews: int = 0
    reviews_today: int = 0
    current_streak: int = 0
    average_ease_factor: float = INITIAL_EASE_FACTOR
    retention_rate: float = 0.0
    cards_by_type: dict[str, int] = field(default_factory=dict)
    ratings_distribution: dict[str, int] = field(default_factory=dict)
    reviews_per_day: list[tuple[str, int]] = field(default_factory=list)
    retention_history: list[tuple[str, float]] = field(default_factory=list)


def get_mastery_label(rate: float) -> str:
    if rate >= 0.9:
        return "EXCELLENT"
    elif rate >= 0.8:
        return "GOOD"
    elif rate >= 0.6:
        return "FAIR"
    return "NEEDS WORK"


def get_mastery_color(rate: float) -> str:
    if rate >= 0.9:
        return "green"
    elif rate >= 0.8:
        return "yellow"
    elif rate >= 0.6:
        return "dark_orange"
    return "red"


def _utc_day(ts: datetime) -> date:
    return ts.astimezone(timezone.utc).date()


def calc_streak(review_days: set[date], today: date) -> int:
    """Consecutive days with reviews, ending today or yesterday."""
    if today in review_days:
        day = today
    elif today - timedelta(days=1) in review_days:
        day = today - timedelta(days=1)
    else:
        return 0
    streak = 0
    while day in review_days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def calc_reviews_per_day(events: list[ReviewEvent], today: date, days: int = REVIEWS_PER_DAY_WINDOW) -> list[tuple[str, int]]:
    counts = Counter(_utc_day(e.ts) for e in events)
    return [
        ((today - timedelta(days=offset)).isoformat(), counts.get(today - timedelta(days=offset), 0))
        for offset in range(days - 1, -1, -1)
    ]


def calc_retention_history(
    events: list[ReviewEvent],
    today: date,
    days: int = RETENTION_HISTORY_WINDOW,
    window: int = RETENTION_ROLLING_DAYS,
) -> list[tuple[str, float]]:
    """Share of good/easy ratings over a rolling window ending on each day."""
    total = Counter()
    positive = Counter()
    for e in events:
        day = _utc_day(e.ts)
        total[day] += 1
        if e.rating in POSITIVE_RATINGS:
            positive[day] += 1

    history = []
    for offset in range(days - 1, -1, -1):
        end = today - timedelta(days=offset)
        window_days = [end - timedelta(days=j) for j in range(window)]
        t = sum(total[d] for d in window_days)
        p = sum(positive[d] for d in window_days)
        history.append((end.isoformat(), round(p / t, 2) if t else 0.0))
    return history


def calculate_dashboard_stats(index: CardIndex, events: list[ReviewEvent], now: datetime) -> DashboardStats:
    today = _utc_day(now)
    counts = get_stats(index, now)

    reviewed = [s for s in index.srs_states.values() if s.reps > 0]
    avg_ease = (
        sum(s.ease_factor for s in reviewed) / len(reviewed) if reviewed else INITIAL_EASE_FACTOR
    )

    ratings = Counter(e.rating for e in events)
    positive = sum(ratings[r] for r in POSITIVE_RATINGS)
    by_type = Counter(card.type for card in index.cards.values())

    return DashboardStats(
        total_cards=counts.total,
        due_cards=counts.due,
        new_cards=counts.new_cards,
        learning_cards=counts.learning,
        mature_cards=counts.mature,
        total_reviews=len(events),
        reviews_today=sum(1 for e in events if _utc_day(e.ts) == today),
        current_streak=calc_streak({_utc_day(e.ts) for e in events}, today),
        average_ease_factor=round(avg_ease, 2),
        retention_rate=round(positive / len(events), 2) if events else 0.0,
        cards_by_type={t.value: by_type.get(t, 0) for t in CardType},
        ratings_distribution={r.value: ratings.get(r, 0) for r in ReviewRating},
        reviews_per_day=calc_reviews_per_day(events, today),
        retention_history=calc_retention_history(events, today),
    )
