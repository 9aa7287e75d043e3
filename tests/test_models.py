"""Tests for data model classes."""
from dataclasses import FrozenInstanceError
from datetime import timedelta

import pytest

from vocab_srs.errors import IndexInvariantError, VocabSrsError
from vocab_srs.models import (
    CardBack,
    CardIndex,
    CardType,
    ReviewEvent,
    ReviewMode,
    ReviewRating,
    SchedulerOptions,
    SchedulerStats,
    SrsState,
)


def test_card_defaults(make_card):
    c = make_card("1", term="ephemeral")
    assert c.front.term == "ephemeral"
    assert c.type is CardType.WORD
    assert c.back is None
    assert c.tags == []
    assert c.deleted is False
    assert c.version == 1


def test_card_back_defaults():
    b = CardBack(translation="short-lived")
    assert b.synonyms == []
    assert b.antonyms == []
    assert b.notes is None


def test_srs_state_defaults(now):
    s = SrsState(card_id="1", due_at=now)
    assert s.ease_factor == 2.5
    assert s.interval_days == 0
    assert s.reps == 0
    assert s.lapses == 0
    assert s.last_review_at is None


def test_srs_state_is_frozen(now):
    s = SrsState(card_id="1", due_at=now)
    with pytest.raises(FrozenInstanceError):
        s.reps = 3


def test_review_event_defaults(now):
    e = ReviewEvent(id="e1", card_id="1", ts=now, rating=ReviewRating.GOOD)
    assert e.mode is ReviewMode.FLASHCARD
    assert e.duration_ms is None


def test_enums_are_strings():
    assert ReviewRating("again") is ReviewRating.AGAIN
    assert CardType.PHRASE == "phrase"
    assert [r.value for r in ReviewRating] == ["again", "hard", "good", "easy"]


def test_scheduler_options_defaults():
    o = SchedulerOptions()
    assert o.new_cards_per_day == 20
    assert o.today_new_card_count == 0
    assert o.loop_mode is False
    assert o.exclude_card_id is None
    assert o.recent_card_ids == ()


def test_scheduler_stats_defaults():
    s = SchedulerStats()
    assert (s.total, s.due, s.new_cards, s.learning, s.mature) == (0, 0, 0, 0, 0)


def test_empty_index_is_valid():
    CardIndex().validate()


def test_valid_index(make_card, make_state, make_index, now):
    index = make_index(
        [make_card("a"), make_card("b"), make_card("n")],
        [
            make_state("a", due_at=now - timedelta(days=2)),
            make_state("b", due_at=now - timedelta(days=1)),
            make_state("n", reps=0, interval_days=0),
        ],
        due_cards=["a", "b"],
        new_cards=["n"],
    )
    index.validate()


def test_index_missing_state(make_card, make_index):
    index = make_index([make_card("a")], [])
    with pytest.raises(IndexInvariantError):
        index.validate()


def test_index_due_cards_out_of_order(make_card, make_state, make_index, now):
    index = make_index(
        [make_card("a"), make_card("b")],
        [make_state("a", due_at=now - timedelta(days=2)), make_state("b", due_at=now - timedelta(days=1))],
        due_cards=["b", "a"],
    )
    with pytest.raises(IndexInvariantError, match="not sorted"):
        index.validate()


def test_index_new_cards_out_of_order(make_card, make_state, make_index, now):
    index = make_index(
        [make_card("old", created_at=now - timedelta(days=2)), make_card("young", created_at=now)],
        [make_state("old", reps=0), make_state("young", reps=0)],
        new_cards=["young", "old"],
    )
    with pytest.raises(IndexInvariantError):
        index.validate()


def test_index_unknown_id(make_card, make_state, make_index):
    index = make_index([make_card("a")], [make_state("a")], due_cards=["ghost"])
    with pytest.raises(IndexInvariantError, match="unknown"):
        index.validate()


def test_index_duplicate_id(make_card, make_state, make_index):
    index = make_index([make_card("a")], [make_state("a")], due_cards=["a", "a"])
    with pytest.raises(IndexInvariantError, match="duplicate"):
        index.validate()


def test_index_reviewed_card_in_new_list(make_card, make_state, make_index):
    index = make_index([make_card("a")], [make_state("a", reps=2)], new_cards=["a"])
    with pytest.raises(VocabSrsError):
        index.validate()
