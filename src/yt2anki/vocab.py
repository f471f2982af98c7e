"""Load vocabulary lists produced by the extraction step."""

import json
from pathlib import Path

from .models import VocabularyItem


class VocabularyError(Exception):
    """A vocabulary file could not be read or parsed."""
    pass


def clean_json_response(text: str) -> str:
    """Strip whitespace and a surrounding markdown code fence."""
    text = text.strip()

    if text.startswith("```json"):
        text = text[len("```json"):]
    elif text.startswith("```"):
        text = text[len("```"):]

    if text.endswith("```"):
        text = text[:-len("```")]

    return text.strip()


def parse_vocabulary(text: str) -> list[VocabularyItem]:
    """Parse a JSON array of vocabulary objects.

    Accepts raw model output wrapped in a code fence.
    """
    content = clean_json_response(text)
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise VocabularyError(f"Invalid vocabulary JSON: {e}") from e

    if not isinstance(data, list):
        raise VocabularyError(
            f"Vocabulary must be a JSON array, got {type(data).__name__}"
        )

    items = []
    for i, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise VocabularyError(f"Item {i + 1} is not an object")
        items.append(VocabularyItem.from_dict(entry))
    return items


def load_vocabulary(path: str | Path) -> list[VocabularyItem]:
    """Read and parse a vocabulary file."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise VocabularyError(f"Cannot read {path}: {e}") from e
    return parse_vocabulary(text)
