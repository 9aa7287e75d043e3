"""Append-only JSON-lines storage for cards and review events."""
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from vocab_srs.constants import BACKUP_VERSION, CARDS_FILE, EVENTS_FILE, INDEX_FILE, INDEXER_VERSION
from vocab_srs.errors import RecordError
from vocab_srs.models import (
    Card,
    CardBack,
    CardFront,
    CardIndex,
    CardType,
    ReviewEvent,
    ReviewMode,
    ReviewRating,
    SrsState,
)

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = str(Path.home() / ".vocab_srs")


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    # naive timestamps are taken as UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def card_to_dict(card: Card) -> dict:
    data = {
        "id": card.id,
        "type": card.type.value,
        "front": {
            "term": card.front.term,
            "phonetic": card.front.phonetic,
            "morphemes": list(card.front.morphemes),
            "example": card.front.example,
            "example_cn": card.front.example_cn,
        },
        "back": None,
        "tags": list(card.tags),
        "created_at": _ts(card.created_at),
        "updated_at": _ts(card.updated_at),
        "deleted": card.deleted,
        "version": card.version,
    }
    if card.back is not None:
        data["back"] = {
            "translation": card.back.translation,
            "explanation": card.back.explanation,
            "explanation_cn": card.back.explanation_cn,
            "synonyms": list(card.back.synonyms),
            "antonyms": list(card.back.antonyms),
            "notes": card.back.notes,
        }
    return data


def card_from_dict(data: dict) -> Card:
    if not isinstance(data, dict):
        raise RecordError(f"Card record must be an object, got {type(data).__name__}")
    try:
        front = data["front"]
        back = data.get("back")
        return Card(
            id=data["id"],
            type=CardType(data["type"]),
            front=CardFront(
                term=front["term"],
                phonetic=front.get("phonetic"),
                morphemes=list(front.get("morphemes") or []),
                example=front.get("example"),
                example_cn=front.get("example_cn"),
            ),
            back=CardBack(
                translation=back.get("translation"),
                explanation=back.get("explanation"),
                explanation_cn=back.get("explanation_cn"),
                synonyms=list(back.get("synonyms") or []),
                antonyms=list(back.get("antonyms") or []),
                notes=back.get("notes"),
            ) if back else None,
            tags=list(data.get("tags") or []),
            created_at=_parse_ts(data["created_at"]),
            updated_at=_parse_ts(data.get("updated_at") or data["created_at"]),
            deleted=bool(data.get("deleted", False)),
            version=int(data.get("version", 1)),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise RecordError(f"Invalid card record {data.get('id', '?')!r}: {e}") from e


def event_to_dict(event: ReviewEvent) -> dict:
    return {
        "id": event.id,
        "card_id": event.card_id,
        "ts": _ts(event.ts),
        "kind": "review",
        "rating": event.rating.value,
        "mode": event.mode.value,
        "duration_ms": event.duration_ms,
    }


def event_from_dict(data: dict) -> ReviewEvent:
    if not isinstance(data, dict):
        raise RecordError(f"Review event must be an object, got {type(data).__name__}")
    try:
        return ReviewEvent(
            id=data["id"],
            card_id=data["card_id"],
            ts=_parse_ts(data["ts"]),
            rating=ReviewRating(data["rating"]),
            mode=ReviewMode(data.get("mode", "flashcard")),
            duration_ms=data.get("duration_ms"),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise RecordError(f"Invalid review event {data.get('id', '?')!r}: {e}") from e


def _append_line(data_dir: str, filename: str, record: dict) -> None:
    Path(data_dir).mkdir(parents=True, exist_ok=True)
    with open(Path(data_dir) / filename, "a", encoding="utf-8") as f:
        f.write(json.dumps(record, ensure_ascii=False) + "\n")


def _read_lines(data_dir: str, filename: str) -> list[dict]:
    path = Path(data_dir) / filename
    if not path.exists():
        return []
    records = []
    with open(path, encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError:
                logger.warning("Skipping invalid JSON in %s line %d: %.50s", filename, lineno, line)
    return records


def append_card(data_dir: str, card: Card) -> None:
    _append_line(data_dir, CARDS_FILE, card_to_dict(card))


def append_event(data_dir: str, event: ReviewEvent) -> None:
    _append_line(data_dir, EVENTS_FILE, event_to_dict(event))


def read_cards(data_dir: str) -> list[Card]:
    """Every card record ever written, including superseded versions."""
    return [card_from_dict(r) for r in _read_lines(data_dir, CARDS_FILE)]


def read_events(data_dir: str) -> list[ReviewEvent]:
    return [event_from_dict(r) for r in _read_lines(data_dir, EVENTS_FILE)]


def write_snapshot(data_dir: str, index: CardIndex, built_at: datetime) -> None:
    """Atomically write a summary of the index next to the logs."""
    Path(data_dir).mkdir(parents=True, exist_ok=True)
    target = Path(data_dir) / INDEX_FILE
    snapshot = {
        "indexer_version": INDEXER_VERSION,
        "built_at": _ts(built_at),
        "due_cards": list(index.due_cards),
        "new_cards": list(index.new_cards),
        "srs_states": {cid: _state_to_dict(s) for cid, s in index.srs_states.items()},
    }
    tmp = target.with_name(f"{INDEX_FILE}.{os.getpid()}.tmp")
    try:
        tmp.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
        os.replace(tmp, target)
    finally:
        if tmp.exists():
            tmp.unlink()


def read_snapshot(data_dir: str) -> dict | None:
    path = Path(data_dir) / INDEX_FILE
    if not path.exists():
        return None
    return json.loads(path.read_text(encoding="utf-8"))


def _state_to_dict(state: SrsState) -> dict:
    return {
        "due_at": _ts(state.due_at),
        "interval_days": state.interval_days,
        "ease_factor": state.ease_factor,
        "reps": state.reps,
        "lapses": state.lapses,
        "last_review_at": _ts(state.last_review_at),
    }


def export_backup(data_dir: str, path: str, now: datetime) -> tuple[int, int]:
    """Write every card version and review event to one JSON file.

    Returns the number of cards and events written. Nothing is written when
    the store is empty.
    """
    cards = read_cards(data_dir)
    events = read_events(data_dir)
    if not cards and not events:
        logger.warning("No data to export from %s", data_dir)
        return 0, 0
    backup = {
        "version": BACKUP_VERSION,
        "exported_at": _ts(now),
        "cards": [card_to_dict(c) for c in cards],
        "events": [event_to_dict(e) for e in events],
    }
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(backup, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Backup exported to %s: %d cards, %d events", target, len(cards), len(events))
    return len(cards), len(events)


def import_backup(data_dir: str, path: str) -> tuple[int, int]:
    """Merge a backup file into the store.

    A card is appended when its id is unknown or its version is newer than
    the stored one; events are appended once per id. Returns the number of
    cards and events appended.
    """
    try:
        backup = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise RecordError(f"Invalid backup file {path}: {e}") from e
    if (
        not isinstance(backup, dict)
        or not isinstance(backup.get("version"), int)
        or isinstance(backup.get("version"), bool)
        or not 1 <= backup["version"] <= BACKUP_VERSION
        or not isinstance(backup.get("cards"), list)
        or not isinstance(backup.get("events"), list)
    ):
        raise RecordError(f"Invalid backup file format: {path}")

    # convert everything first so a bad record leaves the store untouched
    cards = [card_from_dict(r) for r in backup["cards"]]
    events = [event_from_dict(r) for r in backup["events"]]

    versions: dict[str, int] = {}
    for card in read_cards(data_dir):
        versions[card.id] = max(card.version, versions.get(card.id, 0))
    seen_events = {e.id for e in read_events(data_dir)}

    imported_cards = 0
    for card in cards:
        if card.version > versions.get(card.id, 0):
            append_card(data_dir, card)
            versions[card.id] = card.version
            imported_cards += 1

    imported_events = 0
    for event in events:
        if event.id not in seen_events:
            append_event(data_dir, event)
            seen_events.add(event.id)
            imported_events += 1

    logger.info("Backup imported from %s: %d cards, %d events", path, imported_cards, imported_events)
    return imported_cards, imported_events
