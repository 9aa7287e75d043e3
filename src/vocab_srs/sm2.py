"""SM-2 spaced repetition algorithm."""
from dataclasses import replace
from datetime import datetime

from vocab_srs.constants import (
    DAY,
    INITIAL_EASE_FACTOR,
    MAX_EASE_FACTOR,
    MAX_INTERVAL_DAYS,
    MIN_EASE_FACTOR,
    MIN_REVIEW_INTERVAL,
)
from vocab_srs.models import ReviewRating, SrsState

QUALITY_BY_RATING = {
    ReviewRating.AGAIN: 0,
    ReviewRating.HARD: 3,
    ReviewRating.GOOD: 4,
    ReviewRating.EASY: 5,
}


def rating_to_quality(rating: ReviewRating) -> int:
    return QUALITY_BY_RATING[ReviewRating(rating)]


def create_initial_srs_state(card_id: str, now: datetime) -> SrsState:
    return SrsState(
        card_id=card_id,
        due_at=now,
        interval_days=0,
        ease_factor=INITIAL_EASE_FACTOR,
        reps=0,
        lapses=0,
    )


def calculate_next_state(
    current: SrsState,
    rating: ReviewRating,
    review_time: datetime,
) -> SrsState:
    """Calculate the scheduling state after grading a card.

    Args:
        current: State before the review
        rating: How well the learner recalled the card
        review_time: When the review happened

    Returns:
        A new SrsState. A failed review resets reps to 0 with a one day
        interval and counts a lapse. A successful review less than
        MIN_REVIEW_INTERVAL after the previous one only moves due_at.
    """
    quality = rating_to_quality(rating)
    reps = current.reps
    interval = current.interval_days
    ease_factor = current.ease_factor
    lapses = current.lapses

    consolidating = (
        current.last_review_at is not None
        and reps > 0
        and review_time - current.last_review_at < MIN_REVIEW_INTERVAL
    )

    if quality < 3:
        # Incorrect: reset
        reps = 0
        interval = 1
        lapses += 1
    elif not consolidating:
        reps += 1
        if reps == 1:
            interval = 1
        elif reps == 2:
            interval = 6
        else:
            interval = round(interval * ease_factor)
        interval = min(interval, MAX_INTERVAL_DAYS)

        ease_factor = ease_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
        ease_factor = max(MIN_EASE_FACTOR, min(MAX_EASE_FACTOR, ease_factor))

    return replace(
        current,
        due_at=review_time + interval * DAY,
        interval_days=interval,
        ease_factor=round(ease_factor, 2),
        reps=reps,
        lapses=lapses,
        last_review_at=review_time,
    )
