"""JSON configuration blobs stored in the collection's ``col`` row.

Anki's legacy collection keeps its note types, decks, deck options and
global preferences as JSON text in a single row. The blobs reference each
other by id: the note type points at the working deck, both decks point
at the shared options group, and the global config marks the working deck
as current.
"""

import json
import logging
import re
import sqlite3

from .models import Deck, Field, NoteType, Template
from .schema import SCHEMA_VERSION

logger = logging.getLogger(__name__)

# Fixed ids. Anki matches note types by id on import, so these must stay
# constant across releases or re-imports will create duplicate note types.
MODEL_ID = 1704067200000
DECK_ID = 1704067200001
DEFAULT_DECK_ID = 1
DECK_CONFIG_ID = 1

MODEL_NAME = "yt2anki Vocabulary"
DEFAULT_DECK_NAME = "Default"
DEFAULT_DESCRIPTION = "Vocabulary deck created by yt2anki"

FIELD_NAMES = ("Word", "Definition", "IPA", "ExampleEN", "ExampleRU")

# Placeholders Anki provides on its own
BUILTIN_PLACEHOLDERS = frozenset({"FrontSide"})

FRONT_TEMPLATE = '<div class="word">{{Word}}</div>'

BACK_TEMPLATE = """<div class="word">{{FrontSide}}</div>
<hr id="answer">
<div class="definition">{{Definition}}</div>
<div class="ipa">/{{IPA}}/</div>
<div class="example">
  <div class="en">{{ExampleEN}}</div>
  <div class="ru">{{ExampleRU}}</div>
</div>"""

REVERSE_FRONT_TEMPLATE = '<div class="definition">{{Definition}}</div>'

REVERSE_BACK_TEMPLATE = """<div class="definition">{{FrontSide}}</div>
<hr id="answer">
<div class="word">{{Word}}</div>
<div class="ipa">/{{IPA}}/</div>
<div class="example">
  <div class="en">{{ExampleEN}}</div>
  <div class="ru">{{ExampleRU}}</div>
</div>"""

CSS = """.card {
  font-family: arial;
  font-size: 20px;
  text-align: center;
  color: black;
  background-color: white;
}
.word {
  font-size: 28px;
  font-weight: bold;
  color: #2196F3;
}
.definition {
  font-size: 22px;
  margin: 10px 0;
}
.ipa {
  font-size: 18px;
  color: #666;
  font-style: italic;
}
.example {
  margin-top: 15px;
  text-align: left;
  padding: 10px;
  background: #f5f5f5;
  border-radius: 5px;
}
.example .en {
  font-weight: bold;
}
.example .ru {
  color: #666;
  margin-top: 5px;
}"""

LATEX_PRE = r"""\documentclass[12pt]{article}
\special{papersize=3in,5in}
\usepackage[utf8]{inputenc}
\usepackage{amssymb,amsmath}
\pagestyle{empty}
\setlength{\parindent}{0in}
\begin{document}"""

LATEX_POST = r"\end{document}"

_PLACEHOLDER_RE = re.compile(r"{{\s*([^{}]+?)\s*}}")


def build_note_type() -> NoteType:
    """The single vocabulary note type: five fields, forward and reverse cards."""
    return NoteType(
        id=MODEL_ID,
        name=MODEL_NAME,
        fields=[Field(name, i) for i, name in enumerate(FIELD_NAMES)],
        templates=[
            Template("Forward (EN → RU)", FRONT_TEMPLATE, BACK_TEMPLATE, 0),
            Template("Reverse (RU → EN)", REVERSE_FRONT_TEMPLATE, REVERSE_BACK_TEMPLATE, 1),
        ],
        css=CSS,
    )


def template_fields(template: Template) -> set[str]:
    """Field names referenced by a template's question and answer."""
    names = set()
    for fmt in (template.qfmt, template.afmt):
        for match in _PLACEHOLDER_RE.finditer(fmt):
            # Strip filters and section markers: {{text:Word}}, {{#Word}}
            name = match.group(1).split(":")[-1].lstrip("#^/")
            names.add(name)
    return names


def check_note_type(note_type: NoteType) -> None:
    """Raise ValueError if a template references an undeclared field."""
    declared = set(note_type.field_names) | BUILTIN_PLACEHOLDERS
    for template in note_type.templates:
        unknown = template_fields(template) - declared
        if unknown:
            raise ValueError(
                f"Template '{template.name}' references unknown fields: {', '.join(sorted(unknown))}"
            )
    ords = [t.ord for t in note_type.templates]
    if ords != list(range(len(ords))):
        raise ValueError(f"Template ordinals must run 0..{len(ords) - 1}, got {ords}")


def build_models(now: int) -> dict:
    """Note type definitions keyed by model id (as a string)."""
    note_type = build_note_type()
    check_note_type(note_type)
    # Each card type is generated when its question field is non-empty
    req = [[0, "any", [0]], [1, "any", [1]]]
    return {
        str(note_type.id): {
            "id": note_type.id,
            "name": note_type.name,
            "type": 0,
            "mod": now,
            "usn": -1,
            "sortf": 0,
            "did": DECK_ID,
            "tmpls": [t.to_dict() for t in note_type.templates],
            "flds": [f.to_dict() for f in note_type.fields],
            "css": note_type.css,
            "latexPre": LATEX_PRE,
            "latexPost": LATEX_POST,
            "latexsvg": False,
            "req": req,
            "tags": [],
            "vers": [],
        }
    }


def build_decks(deck_name: str, now: int, description: str = DEFAULT_DESCRIPTION) -> dict:
    """The default deck plus the working deck, keyed by deck id (as a string)."""
    decks = [
        Deck(DEFAULT_DECK_ID, DEFAULT_DECK_NAME),
        Deck(DECK_ID, deck_name, description),
    ]
    return {str(d.id): d.to_dict(mod=now, conf_id=DECK_CONFIG_ID) for d in decks}


def build_conf() -> dict:
    """Global collection preferences with the working deck selected."""
    return {
        "activeDecks": [DECK_ID],
        "curDeck": DECK_ID,
        "newSpread": 0,
        "collapseTime": 1200,
        "timeLim": 0,
        "estTimes": True,
        "dueCounts": True,
        "curModel": str(MODEL_ID),
        "nextPos": 1,
        "sortType": "noteFld",
        "sortBackwards": False,
        "addToCur": True,
    }


def build_dconf() -> dict:
    """The shared deck options group referenced by both decks."""
    return {
        str(DECK_CONFIG_ID): {
            "id": DECK_CONFIG_ID,
            "name": "Default",
            "mod": 0,
            "usn": 0,
            "maxTaken": 60,
            "autoplay": True,
            "timer": 0,
            "replayq": True,
            "new": {
                "bury": True,
                "delays": [1, 10],
                "initialFactor": 2500,
                "ints": [1, 4, 7],
                "order": 1,
                "perDay": 20,
                "separate": True,
            },
            "rev": {
                "bury": True,
                "ease4": 1.3,
                "fuzz": 0.05,
                "ivlFct": 1,
                "maxIvl": 36500,
                "perDay": 200,
                "hardFactor": 1.2,
            },
            "lapse": {
                "delays": [10],
                "leechAction": 0,
                "leechFails": 8,
                "minInt": 1,
                "mult": 0,
            },
            "dyn": False,
        }
    }


def encode_blob(obj) -> str:
    """Serialize a blob the way it is stored in the ``col`` row."""
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"), allow_nan=False)


def write_collection(
    conn: sqlite3.Connection,
    deck_name: str,
    now: int,
    description: str = DEFAULT_DESCRIPTION,
) -> None:
    """Insert the singleton ``col`` row.

    Args:
        conn: Connection to a database created by ``schema.create_schema``.
        deck_name: Display name of the working deck, stored verbatim.
        now: Creation time in seconds since the epoch.
        description: Working deck description.
    """
    conf = encode_blob(build_conf())
    models = encode_blob(build_models(now))
    decks = encode_blob(build_decks(deck_name, now, description))
    dconf = encode_blob(build_dconf())

    conn.execute(
        "INSERT INTO col (id, crt, mod, scm, ver, dty, usn, ls, conf, models, decks, dconf, tags) "
        "VALUES (1, ?, ?, ?, ?, 0, 0, 0, ?, ?, ?, ?, '{}')",
        (now, now * 1000, now * 1000, SCHEMA_VERSION, conf, models, decks, dconf),
    )
    logger.debug("Wrote collection row for deck %r", deck_name)
