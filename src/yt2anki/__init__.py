"""yt2anki - build Anki vocabulary decks from extracted word lists."""

__version__ = "0.1.0"
