"""
Word-level tokenizer for review text.
"""

import re

from .vocabulary import VocabularyTable


WORD_PATTERN = re.compile(r"\w+(?:'\w+)*")


class Tokenizer:
    """
    Splits text into word tokens on whitespace and punctuation.

    Casing must match the vocabulary the ids come from, so the usual way to
    build one is ``Tokenizer.for_vocabulary(vocabulary)``.
    """

    def __init__(self, lowercase: bool = True):
        self.lowercase = lowercase

    @classmethod
    def for_vocabulary(cls, vocabulary: VocabularyTable) -> "Tokenizer":
        return cls(lowercase=vocabulary.is_lowercase)

    def tokenize(self, text: str) -> list[str]:
        """
        Tokenize text into words.

        Args:
            text: Raw text

        Returns:
            Tokens in input order; empty for empty or blank text
        """
        if not text:
            return []

        if self.lowercase:
            text = text.lower()

        return WORD_PATTERN.findall(text)
