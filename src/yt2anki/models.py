"""Data models for yt2anki decks."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class VocabularyItem:
    """One extracted word with its definition and examples."""

    word: str
    definition: str
    ipa: str
    example_en: str
    example_ru: str

    def to_dict(self) -> dict:
        return {
            "word": self.word,
            "definition": self.definition,
            "ipa": self.ipa,
            "example_en": self.example_en,
            "example_ru": self.example_ru,
        }

    @classmethod
    def from_dict(cls, data: dict) -> VocabularyItem:
        def text(key: str) -> str:
            value = data.get(key)
            return "" if value is None else str(value)

        return cls(
            word=text("word"),
            definition=text("definition"),
            ipa=text("ipa"),
            example_en=text("example_en"),
            example_ru=text("example_ru"),
        )

    def field_values(self) -> list[str]:
        """Values in note type field order."""
        return [self.word, self.definition, self.ipa, self.example_en, self.example_ru]


@dataclass
class Field:
    """A note type field."""

    name: str
    ord: int

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "ord": self.ord,
            "sticky": False,
            "rtl": False,
            "font": "Arial",
            "size": 20,
            "media": [],
        }


@dataclass
class Template:
    """A card template: question and answer render rules."""

    name: str
    qfmt: str
    afmt: str
    ord: int

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "qfmt": self.qfmt,
            "afmt": self.afmt,
            "bqfmt": "",
            "bafmt": "",
            "ord": self.ord,
            "did": None,
        }


@dataclass
class NoteType:
    """Represents an Anki note type (model)."""

    id: int
    name: str
    fields: list[Field] = field(default_factory=list)
    templates: list[Template] = field(default_factory=list)
    css: str = ""

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in sorted(self.fields, key=lambda f: f.ord)]


@dataclass
class Deck:
    """Represents an Anki deck."""

    id: int
    name: str
    description: str = ""

    def to_dict(self, mod: int, conf_id: int) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "mod": mod,
            "usn": -1,
            "lrnToday": [0, 0],
            "revToday": [0, 0],
            "newToday": [0, 0],
            "timeToday": [0, 0],
            "collapsed": False,
            "browserCollapsed": False,
            "desc": self.description,
            "dyn": 0,
            "conf": conf_id,
            "extendNew": 0,
            "extendRev": 0,
        }


@dataclass
class Note:
    """One row of the ``notes`` table."""

    id: int
    guid: str
    mid: int
    mod: int
    flds: str
    sfld: str
    csum: int
    usn: int = -1
    tags: str = ""


@dataclass
class Card:
    """One row of the ``cards`` table, in the new/unreviewed state."""

    id: int
    nid: int
    did: int
    ord: int
    mod: int
    due: int
    usn: int = -1
    type: int = 0
    queue: int = 0
    ivl: int = 0
    factor: int = 0
    reps: int = 0
    lapses: int = 0
    left: int = 0
