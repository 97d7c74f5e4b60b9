"""Letters exercise package exports."""

from .letters_activity import LettersActivity, letter_cue

__all__ = ["LettersActivity", "letter_cue"]
