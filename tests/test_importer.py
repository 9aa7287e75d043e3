# tests/test_importer.py
import json
from dataclasses import replace

import pytest

from vocab_srs.errors import TemplateError
from vocab_srs.importer import (
    import_file,
    infer_card_type,
    parse_bulk_template,
    process_bulk_import,
    sample_template,
    validate_bulk_card,
)
from vocab_srs.indexer import latest_cards
from vocab_srs.models import CardBack, CardType
from vocab_srs.storage import read_cards

def test_infer_card_type():
    assert infer_card_type("ephemeral") is CardType.WORD
    assert infer_card_type("break the ice") is CardType.PHRASE
    assert infer_card_type("once in a blue moon") is CardType.PHRASE
    assert infer_card_type("It was pure serendipity that we met.") is CardType.SENTENCE

def test_validate_requires_term():
    assert validate_bulk_card({"term": "  "}, 2) == (
        "Card at index 2: 'term' is required and must be a non-empty string"
    )
    assert "must be an object" in validate_bulk_card("ephemeral", 0)

def test_validate_type_and_fields():
    assert "'type'" in validate_bulk_card({"term": "x", "type": "idiom"}, 0)
    assert "'synonyms' must be a list" in validate_bulk_card({"term": "x", "synonyms": "fleeting"}, 0)
    assert "'translation' must be a string" in validate_bulk_card({"term": "x", "translation": 3}, 0)
    assert validate_bulk_card({"term": "x", "type": "word", "tags": ["a"]}, 0) is None

def test_parse_json_template():
    data = parse_bulk_template(json.dumps(sample_template()))
    assert data["version"] == 1
    assert len(data["cards"]) == 3

def test_parse_yaml_template():
    text = "version: 1\ncards:\n  - term: ephemeral\n    translation: short-lived\n"
    data = parse_bulk_template(text, "yaml")
    assert data["cards"][0]["term"] == "ephemeral"

@pytest.mark.parametrize("text, fmt, message", [
    ("{not json", "json", "Invalid JSON format"),
    ("cards: [unclosed", "yaml", "Invalid YAML format"),
    ("[1, 2]", "json", "Template must be an object"),
    ('{"cards": []}', "json", "'version'"),
    ('{"version": 0, "cards": []}', "json", "'version'"),
    ('{"version": 1, "cards": {}}', "json", "'cards'"),
])
def test_parse_template_errors(text, fmt, message):
    with pytest.raises(TemplateError, match=message):
        parse_bulk_template(text, fmt)

def test_process_creates_cards(now):
    new_cards, updated, result = process_bulk_import(sample_template(), [], now)
    assert result.imported == 3
    assert result.updated == 0
    assert updated == []
    by_term = {c.front.term: c for c in new_cards}
    assert by_term["break the ice"].type is CardType.PHRASE
    assert by_term["serendipity"].type is CardType.WORD  # inferred
    assert by_term["ephemeral"].back.synonyms == ["transient", "fleeting", "momentary"]
    assert all(c.created_at == now and c.version == 1 for c in new_cards)
    assert len({c.id for c in new_cards}) == 3

def test_process_updates_existing_term(make_card, now):
    existing = replace(
        make_card("1", term="Ephemeral"),
        back=CardBack(translation="old", notes="keep?"),
        tags=["old"],
    )
    template = {"version": 1, "cards": [{"term": " ephemeral ", "translation": "short-lived", "phonetic": "/x/"}]}
    new_cards, updated, result = process_bulk_import(template, [existing], now)
    assert new_cards == []
    assert result.updated == 1
    card = updated[0]
    assert card.id == "1"
    assert card.version == 2
    assert card.front.term == "Ephemeral"
    assert card.front.phonetic == "/x/"
    assert card.back.translation == "short-lived"
    assert card.back.notes is None
    assert card.tags == []
    assert card.created_at == existing.created_at
    assert card.updated_at == now

def test_process_duplicate_terms_within_template(now):
    template = {"version": 1, "cards": [{"term": "ephemeral"}, {"term": "EPHEMERAL", "translation": "brief"}]}
    new_cards, updated, result = process_bulk_import(template, [], now)
    assert (result.imported, result.updated) == (1, 1)
    assert updated[0].id == new_cards[0].id
    assert latest_cards(new_cards + updated)[new_cards[0].id].back.translation == "brief"

def test_process_skips_invalid_entries(now):
    template = {"version": 1, "cards": [{"term": ""}, {"term": "valid"}, {"translation": "no term"}]}
    new_cards, _, result = process_bulk_import(template, [], now)
    assert [c.front.term for c in new_cards] == ["valid"]
    assert result.skipped == 2
    assert len(result.errors) == 2
    assert result.errors[0].startswith("Card at index 0")

def test_import_file(tmp_path, tmp_data_dir, now):
    f = tmp_path / "words.json"
    f.write_text(json.dumps(sample_template()), encoding="utf-8")
    result = import_file(tmp_data_dir, str(f), now)
    assert result.imported == 3
    assert len(read_cards(tmp_data_dir)) == 3

    # importing the same file again only adds new versions
    again = import_file(tmp_data_dir, str(f), now)
    assert again.updated == 3
    assert again.imported == 0
    assert len(latest_cards(read_cards(tmp_data_dir))) == 3

def test_import_yaml_file(tmp_path, tmp_data_dir, now):
    f = tmp_path / "words.yaml"
    f.write_text("version: 1\ncards:\n  - term: serendipity\n    tags: [vocabulary]\n", encoding="utf-8")
    result = import_file(tmp_data_dir, str(f), now)
    assert result.imported == 1
    assert read_cards(tmp_data_dir)[0].tags == ["vocabulary"]

def test_import_bad_file_raises(tmp_path, tmp_data_dir, now):
    f = tmp_path / "broken.json"
    f.write_text("{", encoding="utf-8")
    with pytest.raises(TemplateError):
        import_file(tmp_data_dir, str(f), now)
    assert read_cards(tmp_data_dir) == []
