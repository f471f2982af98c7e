"""Encode vocabulary items into Anki note and card rows."""

from __future__ import annotations

import html
import logging
import sqlite3
import time
from dataclasses import dataclass
from typing import Sequence

from .collection_config import DECK_ID, MODEL_ID, build_note_type
from .models import Card, Note, VocabularyItem

logger = logging.getLogger(__name__)

# Anki joins note fields with the ASCII unit separator
FIELD_SEPARATOR = "\x1f"
# Stand-in for a separator found inside a field value
SEPARATOR_ENTITY = "&#31;"

GUID_PREFIX = "yt2anki"

# Largest prime below 2**31
CHECKSUM_MODULUS = 2147483647

TEMPLATE_COUNT = len(build_note_type().templates)


def field_checksum(text: str) -> int:
    """Rolling base-31 hash of the code points in ``text``.

    Used only for Anki's duplicate lookup index, not for security. The
    result is always in ``[0, CHECKSUM_MODULUS)``, and ``""`` hashes to 0.
    """
    checksum = 0
    for ch in text:
        checksum = (checksum * 31 + ord(ch)) % CHECKSUM_MODULUS
    return checksum


def escape_field(value: str) -> str:
    """HTML-escape a field value so it renders as text, not markup."""
    return html.escape(value, quote=True).replace(FIELD_SEPARATOR, SEPARATOR_ENTITY)


def join_fields(values: Sequence[str]) -> str:
    """Escape and join field values in note type field order."""
    return FIELD_SEPARATOR.join(escape_field(v) for v in values)


def split_fields(flds: str) -> list[str]:
    """Split a stored ``flds`` value back into its (escaped) fields."""
    return flds.split(FIELD_SEPARATOR)


def current_id_seed() -> int:
    """Default id seed: the current time in milliseconds."""
    return int(time.time() * 1000)


class IdSequence:
    """Note and card ids for one encode.

    Note ``i`` gets ``seed + i``. Card ids continue after the last note id
    so the two never overlap within a package.
    """

    def __init__(self, seed: int, note_count: int) -> None:
        self.seed = seed
        self._next_card_id = seed + note_count

    def note_id(self, index: int) -> int:
        return self.seed + index

    def next_card_id(self) -> int:
        card_id = self._next_card_id
        self._next_card_id += 1
        return card_id


@dataclass
class EncodedNote:
    """A note row with the card rows generated from it."""

    note: Note
    cards: list[Card]


def encode_item(item: VocabularyItem, index: int, ids: IdSequence, now: int) -> EncodedNote:
    """Encode one vocabulary item at position ``index`` in the input."""
    note_id = ids.note_id(index)
    note = Note(
        id=note_id,
        guid=f"{GUID_PREFIX}{note_id}",
        mid=MODEL_ID,
        mod=now,
        flds=join_fields(item.field_values()),
        sfld=item.word,
        csum=field_checksum(item.word),
    )
    cards = [
        Card(
            id=ids.next_card_id(),
            nid=note_id,
            did=DECK_ID,
            ord=ord_,
            mod=now,
            due=index + 1,
        )
        for ord_ in range(TEMPLATE_COUNT)
    ]
    return EncodedNote(note=note, cards=cards)


def encode_items(
    items: Sequence[VocabularyItem],
    *,
    id_seed: int | None = None,
    now: int | None = None,
) -> list[EncodedNote]:
    """Encode all items in input order.

    Args:
        items: Vocabulary items; their order becomes the cards' due order.
        id_seed: First note id. Defaults to the current time in milliseconds.
        now: Modification time in seconds. Defaults to the current time.
    """
    if id_seed is None:
        id_seed = current_id_seed()
    if now is None:
        now = int(time.time())

    ids = IdSequence(id_seed, len(items))
    encoded = [encode_item(item, i, ids, now) for i, item in enumerate(items)]

    clashes = sum(FIELD_SEPARATOR in v for item in items for v in item.field_values())
    if clashes:
        logger.warning("Escaped field separator in %d field value(s)", clashes)
    return encoded


def insert_records(conn: sqlite3.Connection, encoded: Sequence[EncodedNote]) -> None:
    """Insert encoded notes and cards.

    Raises:
        sqlite3.Error: on any failed insert (for example a duplicate id).
    """
    for entry in encoded:
        n = entry.note
        conn.execute(
            "INSERT INTO notes (id, guid, mid, mod, usn, tags, flds, sfld, csum, flags, data) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 0, '')",
            (n.id, n.guid, n.mid, n.mod, n.usn, n.tags, n.flds, n.sfld, n.csum),
        )
        conn.executemany(
            "INSERT INTO cards (id, nid, did, ord, mod, usn, type, queue, due, ivl, factor, "
            "reps, lapses, left, odue, odid, flags, data) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, 0, 0, '')",
            [
                (c.id, c.nid, c.did, c.ord, c.mod, c.usn, c.type, c.queue, c.due,
                 c.ivl, c.factor, c.reps, c.lapses, c.left)
                for c in entry.cards
            ],
        )
    logger.debug(
        "Inserted %d notes and %d cards",
        len(encoded),
        sum(len(e.cards) for e in encoded),
    )
