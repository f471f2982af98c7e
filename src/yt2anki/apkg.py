"""Build and read ``.apkg`` packages.

An ``.apkg`` file is a ZIP archive holding the collection database under
``collection.anki2`` and a JSON media manifest under ``media``. This
module runs the build stages in order (schema, collection row, records,
packaging) inside a private scratch directory and reports any failure as
a single ``ApkgError`` naming the stage.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import tempfile
import time
import zipfile
from contextlib import closing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from .collection_config import DEFAULT_DESCRIPTION, DECK_ID, write_collection
from .encoder import encode_items, insert_records
from .models import VocabularyItem
from .paths import atomic_write
from .schema import create_schema

logger = logging.getLogger(__name__)

DATABASE_ENTRY = "collection.anki2"
MEDIA_ENTRY = "media"
# No media is attached, so the manifest is always an empty JSON object
EMPTY_MEDIA_MANIFEST = b"{}"

STAGE_SETUP = "setup"
STAGE_SCHEMA = "schema"
STAGE_CONFIG = "config"
STAGE_RECORDS = "records"
STAGE_PACKAGE = "package"

_STAGE_LABELS = {
    STAGE_SETUP: "scratch setup",
    STAGE_SCHEMA: "schema creation",
    STAGE_CONFIG: "configuration write",
    STAGE_RECORDS: "record insertion",
    STAGE_PACKAGE: "packaging",
}


class ApkgError(Exception):
    """Building or reading a package failed."""

    def __init__(self, stage: str, cause: BaseException | str) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"{_STAGE_LABELS.get(stage, stage)} failed: {cause}")


@dataclass
class ApkgResult:
    """Outcome of a successful build."""

    path: Path
    note_count: int
    card_count: int


@dataclass
class ApkgSummary:
    """Contents of an existing package."""

    entries: list[str]
    media: dict
    deck_names: list[str]
    deck_name: str | None
    note_count: int
    card_count: int
    words: list[str] = field(default_factory=list)


def write_package(
    db_bytes: bytes,
    output_path: Path,
    compression: int = zipfile.ZIP_DEFLATED,
) -> None:
    """Write the two-entry archive to ``output_path`` atomically.

    The parent directory is not created. Any failure leaves no file at
    ``output_path``.
    """

    def write(f) -> None:
        with zipfile.ZipFile(f, "w", compression) as zf:
            zf.writestr(DATABASE_ENTRY, db_bytes)
            zf.writestr(MEDIA_ENTRY, EMPTY_MEDIA_MANIFEST)

    atomic_write(Path(output_path), write, suffix=".apkg.tmp")


def _build_database(
    db_path: Path,
    items: Sequence[VocabularyItem],
    deck_name: str,
    id_seed: int | None,
    now: int,
    description: str,
) -> tuple[int, int]:
    try:
        conn = sqlite3.connect(db_path)
    except sqlite3.Error as e:
        raise ApkgError(STAGE_SETUP, e) from e

    with closing(conn):
        try:
            create_schema(conn)
        except sqlite3.Error as e:
            raise ApkgError(STAGE_SCHEMA, e) from e

        try:
            write_collection(conn, deck_name, now, description)
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise ApkgError(STAGE_CONFIG, e) from e

        try:
            encoded = encode_items(items, id_seed=id_seed, now=now)
            insert_records(conn, encoded)
            conn.commit()
        except (sqlite3.Error, ValueError) as e:
            raise ApkgError(STAGE_RECORDS, e) from e

    return len(encoded), sum(len(e.cards) for e in encoded)


def generate_apkg(
    items: Sequence[VocabularyItem],
    output_path: str | Path,
    deck_name: str,
    *,
    id_seed: int | None = None,
    now: int | None = None,
    description: str = DEFAULT_DESCRIPTION,
    compression: int = zipfile.ZIP_DEFLATED,
) -> ApkgResult:
    """Build an ``.apkg`` file from vocabulary items.

    Args:
        items: Vocabulary items in the order their cards should be studied.
        output_path: Target file. Its directory must exist.
        deck_name: Display name of the deck inside Anki.
        id_seed: First note id; defaults to the current time in ms.
        now: Timestamp in seconds for the collection and rows.
        description: Deck description shown in Anki.
        compression: ``zipfile`` compression constant.

    Returns:
        ApkgResult with the output path and row counts.

    Raises:
        ApkgError: if any stage fails. Nothing is left at ``output_path``.
    """
    output_path = Path(output_path)
    if now is None:
        now = int(time.time())

    try:
        scratch = tempfile.TemporaryDirectory(prefix="yt2anki-")
    except OSError as e:
        raise ApkgError(STAGE_SETUP, e) from e

    with scratch as tmp:
        db_path = Path(tmp) / DATABASE_ENTRY
        logger.info("Encoding %d item(s) into deck %r", len(items), deck_name)
        note_count, card_count = _build_database(
            db_path, items, deck_name, id_seed, now, description
        )

        try:
            db_bytes = db_path.read_bytes()
            write_package(db_bytes, output_path, compression)
        except OSError as e:
            raise ApkgError(STAGE_PACKAGE, e) from e

    logger.info("Wrote %s (%d notes, %d cards)", output_path, note_count, card_count)
    return ApkgResult(path=output_path, note_count=note_count, card_count=card_count)


def read_apkg(path: str | Path) -> ApkgSummary:
    """Open a package and summarize its decks, notes and cards.

    Raises:
        ApkgError: if the file is not a readable package.
    """
    path = Path(path)
    try:
        with zipfile.ZipFile(path) as zf:
            entries = zf.namelist()
            if DATABASE_ENTRY not in entries:
                raise ApkgError(STAGE_PACKAGE, f"missing '{DATABASE_ENTRY}' entry")
            media = json.loads(zf.read(MEDIA_ENTRY)) if MEDIA_ENTRY in entries else {}
            db_bytes = zf.read(DATABASE_ENTRY)
    except (OSError, zipfile.BadZipFile, ValueError) as e:
        raise ApkgError(STAGE_PACKAGE, e) from e

    with tempfile.TemporaryDirectory(prefix="yt2anki-") as tmp:
        db_path = Path(tmp) / DATABASE_ENTRY
        db_path.write_bytes(db_bytes)
        try:
            with closing(sqlite3.connect(db_path)) as conn:
                (decks_json,) = conn.execute("SELECT decks FROM col").fetchone()
                decks = json.loads(decks_json)
                words = [row[0] for row in conn.execute("SELECT sfld FROM notes ORDER BY id")]
                (card_count,) = conn.execute("SELECT COUNT(*) FROM cards").fetchone()
            deck_names = [d["name"] for d in decks.values()]
            working = decks.get(str(DECK_ID))
            deck_name = working["name"] if working else None
        except (sqlite3.Error, TypeError, ValueError, KeyError, AttributeError) as e:
            raise ApkgError(STAGE_PACKAGE, f"unreadable collection: {e}") from e

    return ApkgSummary(
        entries=entries,
        media=media,
        deck_names=deck_names,
        deck_name=deck_name,
        note_count=len(words),
        card_count=card_count,
        words=words,
    )
