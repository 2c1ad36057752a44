"""
Fixed-length feature encoding.

Token sequences are numericalized through the vocabulary and brought to
exactly ``FEATURE_LENGTH`` ids: shorter sequences are right-padded with the
pad id, longer ones keep their first ``FEATURE_LENGTH`` ids.
"""

from itertools import islice
from typing import Iterable, Sequence

import numpy as np

from .vocabulary import VocabularyTable


FEATURE_LENGTH = 600
TRUNCATION_POLICY = "keep_prefix"


def encode(
    tokens: Iterable[str],
    vocabulary: VocabularyTable,
    feature_length: int = FEATURE_LENGTH,
) -> np.ndarray:
    """
    Encode a token sequence as a fixed-length id vector.

    Args:
        tokens: Tokens in text order
        vocabulary: Vocabulary used for the token -> id lookup
        feature_length: Length of the output vector

    Returns:
        Read-only int64 array of shape (feature_length,)
    """
    ids = [vocabulary.lookup(token) for token in islice(tokens, feature_length)]

    features = np.full(feature_length, vocabulary.pad_id, dtype=np.int64)
    features[:len(ids)] = ids
    features.setflags(write=False)

    return features


class FeatureEncoder:
    """Encodes token sequences against a fixed vocabulary."""

    def __init__(
        self,
        vocabulary: VocabularyTable,
        feature_length: int = FEATURE_LENGTH,
    ):
        if feature_length <= 0:
            raise ValueError(f"feature_length must be positive, got {feature_length}")

        self.vocabulary = vocabulary
        self.feature_length = feature_length

    @property
    def pad_id(self) -> int:
        return self.vocabulary.pad_id

    def encode(self, tokens: Iterable[str]) -> np.ndarray:
        return encode(tokens, self.vocabulary, self.feature_length)

    def encode_batch(self, token_sequences: Sequence[Iterable[str]]) -> np.ndarray:
        """
        Encode several token sequences.

        Args:
            token_sequences: One token sequence per text

        Returns:
            int64 array of shape (len(token_sequences), feature_length)
        """
        batch = np.full(
            (len(token_sequences), self.feature_length),
            self.pad_id,
            dtype=np.int64,
        )

        for i, tokens in enumerate(token_sequences):
            batch[i] = self.encode(tokens)

        return batch
