"""Tests for data models."""

from yt2anki.models import Card, Deck, Field, Note, NoteType, Template, VocabularyItem


def _item(**overrides):
    data = {
        "word": "hello",
        "definition": "привет",
        "ipa": "həˈloʊ",
        "example_en": "Hello, world!",
        "example_ru": "Привет, мир!",
    }
    data.update(overrides)
    return data


class TestVocabularyItem:
    def test_from_dict(self):
        item = VocabularyItem.from_dict(_item())
        assert item.word == "hello"
        assert item.definition == "привет"
        assert item.ipa == "həˈloʊ"
        assert item.example_en == "Hello, world!"
        assert item.example_ru == "Привет, мир!"

    def test_round_trip_dict(self):
        data = _item()
        assert VocabularyItem.from_dict(data).to_dict() == data

    def test_missing_and_null_values_become_empty(self):
        item = VocabularyItem.from_dict({"word": "hi", "ipa": None})
        assert item.ipa == ""
        assert item.definition == ""
        assert item.example_ru == ""

    def test_non_string_values_are_stringified(self):
        item = VocabularyItem.from_dict(_item(word=42))
        assert item.word == "42"

    def test_field_values_order(self):
        item = VocabularyItem.from_dict(_item())
        assert item.field_values() == [
            "hello", "привет", "həˈloʊ", "Hello, world!", "Привет, мир!",
        ]


def test_note_type_field_names_sorted_by_ord():
    note_type = NoteType(id=1, name="Test", fields=[Field("B", 1), Field("A", 0)])
    assert note_type.field_names == ["A", "B"]


def test_template_to_dict():
    data = Template("Card 1", "{{A}}", "{{B}}", 0).to_dict()
    assert data["qfmt"] == "{{A}}"
    assert data["afmt"] == "{{B}}"
    assert data["ord"] == 0
    assert data["did"] is None


def test_deck_to_dict_zeroed_counters():
    data = Deck(id=5, name="Words", description="desc").to_dict(mod=100, conf_id=1)
    assert data["id"] == 5
    assert data["name"] == "Words"
    assert data["desc"] == "desc"
    assert data["conf"] == 1
    for key in ("lrnToday", "revToday", "newToday", "timeToday"):
        assert data[key] == [0, 0]


def test_note_defaults():
    note = Note(id=1, guid="g", mid=2, mod=3, flds="a", sfld="a", csum=97)
    assert note.usn == -1
    assert note.tags == ""


def test_card_defaults_are_new():
    card = Card(id=1, nid=2, did=3, ord=0, mod=4, due=1)
    assert card.usn == -1
    assert (card.type, card.queue, card.ivl, card.factor, card.reps, card.lapses, card.left) == (
        0, 0, 0, 0, 0, 0, 0,
    )
