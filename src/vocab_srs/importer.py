"""Bulk import of vocabulary cards from a JSON or YAML template."""
import json
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from vocab_srs.constants import BULK_TEMPLATE_VERSION
from vocab_srs.errors import TemplateError
from vocab_srs.indexer import latest_cards
from vocab_srs.models import Card, CardBack, CardFront, CardType
from vocab_srs.storage import append_card, read_cards

logger = logging.getLogger(__name__)

LIST_FIELDS = ("morphemes", "synonyms", "antonyms", "tags")
TEXT_FIELDS = (
    "phonetic", "example", "example_cn", "translation",
    "explanation", "explanation_cn", "notes",
)


@dataclass
class BulkImportResult:
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


def infer_card_type(term: str) -> CardType:
    """1 word is a word, 2-4 words a phrase, 5 or more a sentence."""
    words = len(term.split())
    if words <= 1:
        return CardType.WORD
    elif words <= 4:
        return CardType.PHRASE
    return CardType.SENTENCE


def normalize_term(term: str) -> str:
    return term.strip().lower()


def validate_bulk_card(entry, position: int) -> Optional[str]:
    """Return an error message for an invalid template entry, else None."""
    if not isinstance(entry, dict):
        return f"Card at index {position}: entry must be an object"
    term = entry.get("term")
    if not isinstance(term, str) or not term.strip():
        return f"Card at index {position}: 'term' is required and must be a non-empty string"
    card_type = entry.get("type")
    if card_type is not None and card_type not in {t.value for t in CardType}:
        return f"Card at index {position}: 'type' must be 'word', 'phrase', or 'sentence'"
    for name in LIST_FIELDS:
        value = entry.get(name)
        if value is not None and not isinstance(value, list):
            return f"Card at index {position}: '{name}' must be a list"
    for name in TEXT_FIELDS:
        value = entry.get(name)
        if value is not None and not isinstance(value, str):
            return f"Card at index {position}: '{name}' must be a string"
    return None


def parse_bulk_template(text: str, fmt: str = "json") -> dict:
    """Parse template text and check its top-level shape."""
    if fmt in ("yaml", "yml"):
        import yaml
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise TemplateError(f"Invalid YAML format: {e}") from e
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise TemplateError(f"Invalid JSON format: {e}") from e

    if not isinstance(data, dict):
        raise TemplateError("Template must be an object")
    version = data.get("version")
    if not isinstance(version, int) or isinstance(version, bool) or version < 1:
        raise TemplateError("'version' is required and must be a positive number")
    if not isinstance(data.get("cards"), list):
        raise TemplateError("'cards' is required and must be a list")
    return data


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _clean_list(values: Optional[list]) -> list[str]:
    return [str(v).strip() for v in values or [] if str(v).strip()]


def _back_from_entry(entry: dict) -> CardBack:
    return CardBack(
        translation=_clean(entry.get("translation")),
        explanation=_clean(entry.get("explanation")),
        explanation_cn=_clean(entry.get("explanation_cn")),
        synonyms=_clean_list(entry.get("synonyms")),
        antonyms=_clean_list(entry.get("antonyms")),
        notes=_clean(entry.get("notes")),
    )


def card_from_entry(entry: dict, now: datetime) -> Card:
    term = entry["term"].strip()
    return Card(
        id=str(uuid.uuid4()),
        type=CardType(entry["type"]) if entry.get("type") else infer_card_type(term),
        front=CardFront(
            term=term,
            phonetic=_clean(entry.get("phonetic")),
            morphemes=_clean_list(entry.get("morphemes")),
            example=_clean(entry.get("example")),
            example_cn=_clean(entry.get("example_cn")),
        ),
        back=_back_from_entry(entry),
        tags=_clean_list(entry.get("tags")),
        created_at=now,
        updated_at=now,
    )


def update_from_entry(card: Card, entry: dict, now: datetime) -> Card:
    """New version of ``card``: back and tags overwritten, front fields merged."""
    front = replace(
        card.front,
        phonetic=_clean(entry.get("phonetic")) or card.front.phonetic,
        morphemes=_clean_list(entry.get("morphemes")) or card.front.morphemes,
        example=_clean(entry.get("example")) or card.front.example,
        example_cn=_clean(entry.get("example_cn")) or card.front.example_cn,
    )
    return replace(
        card,
        front=front,
        back=_back_from_entry(entry),
        tags=_clean_list(entry.get("tags")),
        updated_at=now,
        version=card.version + 1,
    )


def process_bulk_import(
    template: dict,
    existing_cards: Iterable[Card],
    now: datetime,
) -> tuple[list[Card], list[Card], BulkImportResult]:
    """Turn template entries into new cards and new versions of existing ones.

    Entries whose normalised term matches a live card update that card
    instead of creating a duplicate. Invalid entries are skipped and
    reported in the result.
    """
    by_term = {normalize_term(c.front.term): c for c in latest_cards(existing_cards).values()}
    new_cards: list[Card] = []
    updated_cards: list[Card] = []
    result = BulkImportResult()

    for position, entry in enumerate(template["cards"]):
        error = validate_bulk_card(entry, position)
        if error:
            result.errors.append(error)
            result.skipped += 1
            continue

        key = normalize_term(entry["term"])
        existing = by_term.get(key)
        if existing is not None:
            card = update_from_entry(existing, entry, now)
            updated_cards.append(card)
            result.updated += 1
        else:
            card = card_from_entry(entry, now)
            new_cards.append(card)
            result.imported += 1
        by_term[key] = card

    return new_cards, updated_cards, result


def import_file(data_dir: str, file_path: str, now: datetime) -> BulkImportResult:
    """Import a template file into the card store."""
    path = Path(file_path)
    fmt = path.suffix.lower().lstrip(".") or "json"
    template = parse_bulk_template(path.read_text(encoding="utf-8"), fmt)
    new_cards, updated_cards, result = process_bulk_import(template, read_cards(data_dir), now)
    for card in new_cards + updated_cards:
        append_card(data_dir, card)
    for error in result.errors:
        logger.warning("%s: %s", path.name, error)
    logger.info(
        "Imported %s: %d new, %d updated, %d skipped",
        path.name, result.imported, result.updated, result.skipped,
    )
    return result


def sample_template() -> dict:
    return {
        "version": BULK_TEMPLATE_VERSION,
        "cards": [
            {
                "term": "ephemeral",
                "type": "word",
                "phonetic": "/ɪˈfem.ər.əl/",
                "morphemes": ["ephe", "meral"],
                "translation": "短暂的，转瞬即逝的",
                "explanation": "lasting for a very short time",
                "example": "Fame in the internet age is often ephemeral.",
                "synonyms": ["transient", "fleeting", "momentary"],
                "antonyms": ["permanent", "lasting", "enduring"],
                "tags": ["GRE", "adjective"],
            },
            {
                "term": "serendipity",
                "translation": "意外发现；机缘巧合",
                "explanation": "the fact of finding interesting or valuable things by chance",
                "example": "It was pure serendipity that we met at the coffee shop.",
                "synonyms": ["luck", "fortune", "chance"],
                "tags": ["vocabulary"],
            },
            {
                "term": "break the ice",
                "type": "phrase",
                "translation": "打破僵局；缓和气氛",
                "explanation": "to make people feel more relaxed in a social situation",
                "tags": ["idiom", "social"],
            },
        ],
    }
