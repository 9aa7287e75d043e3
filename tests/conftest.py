from datetime import datetime, timedelta, timezone

import pytest

from vocab_srs.models import Card, CardFront, CardIndex, CardType, SrsState

NOW = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def tmp_data_dir(tmp_path):
    """Provide a temporary data directory for the card store."""
    return str(tmp_path / "vocab")


@pytest.fixture
def make_card():
    def _make(card_id, term=None, created_at=NOW - timedelta(days=30), **kwargs):
        return Card(
            id=card_id,
            type=kwargs.pop("type", CardType.WORD),
            front=CardFront(term=term or f"term-{card_id}"),
            created_at=created_at,
            updated_at=kwargs.pop("updated_at", created_at),
            **kwargs,
        )
    return _make


@pytest.fixture
def make_state():
    def _make(card_id, due_at=NOW, reps=1, interval_days=1, ease_factor=2.5, lapses=0, **kwargs):
        return SrsState(
            card_id=card_id,
            due_at=due_at,
            interval_days=interval_days,
            ease_factor=ease_factor,
            reps=reps,
            lapses=lapses,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_index():
    def _make(cards, states, due_cards=(), new_cards=()):
        return CardIndex(
            cards={c.id: c for c in cards},
            srs_states={s.card_id: s for s in states},
            due_cards=tuple(due_cards),
            new_cards=tuple(new_cards),
        )
    return _make
