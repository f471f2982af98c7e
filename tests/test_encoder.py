"""Tests for note and card encoding."""

import html
import sqlite3

import pytest

from yt2anki.collection_config import DECK_ID, MODEL_ID
from yt2anki.encoder import (
    CHECKSUM_MODULUS,
    FIELD_SEPARATOR,
    GUID_PREFIX,
    IdSequence,
    encode_items,
    escape_field,
    field_checksum,
    insert_records,
    join_fields,
    split_fields,
)
from yt2anki.models import VocabularyItem
from yt2anki.schema import create_schema

SEED = 1_700_000_000_000
NOW = 1_700_000_000


def make_item(word="hello", definition="привет", ipa="həˈloʊ",
              example_en="Hello, world!", example_ru="Привет, мир!"):
    return VocabularyItem(word, definition, ipa, example_en, example_ru)


class TestFieldChecksum:
    """Tests for field_checksum."""

    @pytest.mark.parametrize("text", ["", "hello", "hello world", "привет", "Hello мир 123"])
    def test_deterministic(self, text):
        assert field_checksum(text) == field_checksum(text)

    def test_different_inputs_differ(self):
        assert field_checksum("hello") != field_checksum("world")

    def test_empty_string_is_zero(self):
        assert field_checksum("") == 0

    def test_known_values(self):
        assert field_checksum("a") == 97
        assert field_checksum("ab") == 97 * 31 + 98

    def test_within_modulus(self):
        value = field_checksum("a much longer word that overflows the modulus many times")
        assert 0 <= value < CHECKSUM_MODULUS

    def test_uses_code_points_not_bytes(self):
        # One code point for "é" (U+00E9), not its two UTF-8 bytes
        assert field_checksum("é") == 0xE9
        assert field_checksum("😀") == 0x1F600


class TestEscaping:
    def test_escapes_markup(self):
        escaped = escape_field("<script>alert('x')</script> & \"q\"")
        assert "<" not in escaped
        assert ">" not in escaped
        assert '"' not in escaped
        assert html.unescape(escaped) == "<script>alert('x')</script> & \"q\""

    def test_escapes_separator(self):
        escaped = escape_field("a\x1fb")
        assert FIELD_SEPARATOR not in escaped
        assert escaped == "a&#31;b"

    def test_join_field_count(self):
        joined = join_fields(["a", "b\x1fc", "", "d", "e"])
        assert len(split_fields(joined)) == 5

    def test_unicode_preserved(self):
        values = ["日本語", "école", "😀🎉", "ŋ", "Привет"]
        assert split_fields(join_fields(values)) == values


class TestIdSequence:
    def test_note_ids(self):
        ids = IdSequence(100, 3)
        assert [ids.note_id(i) for i in range(3)] == [100, 101, 102]

    def test_card_ids_follow_notes(self):
        ids = IdSequence(100, 3)
        assert [ids.next_card_id() for _ in range(3)] == [103, 104, 105]


class TestEncodeItems:
    def test_counts(self):
        encoded = encode_items([make_item(), make_item("world")], id_seed=SEED, now=NOW)
        assert len(encoded) == 2
        assert all(len(e.cards) == 2 for e in encoded)

    def test_empty(self):
        assert encode_items([], id_seed=SEED, now=NOW) == []

    def test_note_values(self):
        (entry,) = encode_items([make_item()], id_seed=SEED, now=NOW)
        note = entry.note
        assert note.id == SEED
        assert note.guid == f"{GUID_PREFIX}{SEED}"
        assert note.mid == MODEL_ID
        assert note.mod == NOW
        assert note.usn == -1
        assert note.tags == ""
        assert note.sfld == "hello"
        assert note.csum == field_checksum("hello")
        assert split_fields(note.flds)[0] == "hello"

    def test_card_values(self):
        items = [make_item("one"), make_item("two"), make_item("three")]
        encoded = encode_items(items, id_seed=SEED, now=NOW)
        note_ids = {e.note.id for e in encoded}
        card_ids = [c.id for e in encoded for c in e.cards]

        assert card_ids == list(range(SEED + 3, SEED + 9))
        assert not note_ids & set(card_ids)
        for i, entry in enumerate(encoded):
            assert [c.ord for c in entry.cards] == [0, 1]
            for card in entry.cards:
                assert card.nid == entry.note.id
                assert card.did == DECK_ID
                assert card.due == i + 1
                assert (card.ivl, card.reps, card.lapses, card.queue, card.type) == (0, 0, 0, 0, 0)

    def test_escaped_fields_raw_checksum(self):
        word = "<script>alert('x')</script>"
        (entry,) = encode_items([make_item(word=word)], id_seed=SEED, now=NOW)
        stored = split_fields(entry.note.flds)[0]
        assert "<" not in stored and ">" not in stored
        assert entry.note.sfld == word
        assert entry.note.csum == field_checksum(word)

    def test_same_word_same_checksum_across_runs(self):
        first = encode_items([make_item()], id_seed=1, now=NOW)[0].note
        second = encode_items([make_item()], id_seed=999, now=NOW + 5)[0].note
        assert first.csum == second.csum
        assert first.id != second.id

    def test_default_seed_from_clock(self, monkeypatch):
        monkeypatch.setattr("yt2anki.encoder.time.time", lambda: 1234.5678)
        (entry,) = encode_items([make_item()])
        assert entry.note.id == 1234567
        assert entry.note.mod == 1234

    def test_separator_in_value_logged(self, caplog):
        with caplog.at_level("WARNING", logger="yt2anki.encoder"):
            (entry,) = encode_items([make_item(definition="a\x1fb")], id_seed=SEED, now=NOW)
        assert len(split_fields(entry.note.flds)) == 5
        assert "separator" in caplog.text


class TestInsertRecords:
    def _conn(self):
        conn = sqlite3.connect(":memory:")
        create_schema(conn)
        return conn

    def test_rows_written(self):
        conn = self._conn()
        items = [make_item("one"), make_item("two")]
        insert_records(conn, encode_items(items, id_seed=SEED, now=NOW))

        assert conn.execute("SELECT COUNT(*) FROM notes").fetchone()[0] == 2
        assert conn.execute("SELECT COUNT(*) FROM cards").fetchone()[0] == 4
        rows = conn.execute("SELECT nid, ord, due FROM cards ORDER BY id").fetchall()
        assert rows == [(SEED, 0, 1), (SEED, 1, 1), (SEED + 1, 0, 2), (SEED + 1, 1, 2)]
        conn.close()

    def test_duplicate_id_fails(self):
        conn = self._conn()
        encoded = encode_items([make_item()], id_seed=SEED, now=NOW)
        insert_records(conn, encoded)
        with pytest.raises(sqlite3.IntegrityError):
            insert_records(conn, encoded)
        conn.close()
