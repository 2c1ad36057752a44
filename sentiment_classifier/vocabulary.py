"""
Vocabulary table mapping tokens to the integer ids the model was trained on.

The table is loaded once from a delimited ``token,id`` file and is read-only
afterwards, so a single instance can be shared by every request.
"""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import pandas as pd

from .errors import ResourceError

logger = logging.getLogger("sentiment_classifier")


DEFAULT_UNKNOWN_ID = 0
DEFAULT_PAD_ID = 0
VOCABULARY_FILE = "imdb_word_index.csv"


class VocabularyTable:
    """
    Immutable token -> id mapping.

    Tokens missing from the table resolve to ``unknown_id``. When the source
    lists a token more than once, the first occurrence wins.
    """

    def __init__(
        self,
        mapping: Mapping[str, int],
        unknown_id: int = DEFAULT_UNKNOWN_ID,
        pad_id: int = DEFAULT_PAD_ID,
    ):
        """
        Args:
            mapping: Token to id associations
            unknown_id: Id returned for tokens absent from the table
            pad_id: Id used to fill feature vectors up to their fixed length
        """
        if unknown_id < 0 or pad_id < 0:
            raise ValueError("unknown_id and pad_id must be non-negative")

        self._mapping = MappingProxyType(dict(mapping))
        self._unknown_id = int(unknown_id)
        self._pad_id = int(pad_id)
        self._is_lowercase = all(token == token.lower() for token in self._mapping)

    @property
    def unknown_id(self) -> int:
        return self._unknown_id

    @property
    def pad_id(self) -> int:
        return self._pad_id

    @property
    def mapping(self) -> Mapping[str, int]:
        return self._mapping

    @property
    def is_lowercase(self) -> bool:
        """True when every token is stored in lowercase form."""
        return self._is_lowercase

    @property
    def max_id(self) -> int:
        ids = [self._unknown_id, self._pad_id, *self._mapping.values()]
        return max(ids)

    def lookup(self, token: str) -> int:
        """
        Get the id for a token.

        Args:
            token: Token string

        Returns:
            Mapped id, or ``unknown_id`` for unknown tokens
        """
        return self._mapping.get(token, self._unknown_id)

    def __len__(self) -> int:
        return len(self._mapping)

    def __contains__(self, token: object) -> bool:
        return token in self._mapping

    def __repr__(self) -> str:
        return (
            f"VocabularyTable(size={len(self)}, unknown_id={self._unknown_id}, "
            f"pad_id={self._pad_id})"
        )

    @classmethod
    def load(
        cls,
        source: str | Path,
        separator: str = ",",
        unknown_id: int = DEFAULT_UNKNOWN_ID,
        pad_id: int = DEFAULT_PAD_ID,
    ) -> "VocabularyTable":
        """
        Load a vocabulary from a delimited ``token<separator>id`` file.

        The whole file is validated before the table is built; a single bad
        row fails the load.

        Args:
            source: Path to the vocabulary file
            separator: Column delimiter
            unknown_id: Id for unknown tokens
            pad_id: Id used for padding

        Returns:
            Loaded VocabularyTable

        Raises:
            ResourceError: If the file is missing, unreadable or malformed
        """
        source = Path(source)

        if not source.is_file():
            raise ResourceError(f"Vocabulary file not found: {source}")

        try:
            with open(source, "r", encoding="utf-8") as f:
                frame = pd.read_csv(
                    f,
                    sep=separator,
                    header=None,
                    dtype=str,
                    keep_default_na=False,
                    skip_blank_lines=True,
                )
        except pd.errors.EmptyDataError as exc:
            raise ResourceError(f"Vocabulary file is empty: {source}") from exc
        except pd.errors.ParserError as exc:
            raise ResourceError(f"Malformed vocabulary file {source}: {exc}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise ResourceError(f"Cannot read vocabulary file {source}: {exc}") from exc

        if frame.shape[1] != 2:
            raise ResourceError(
                f"Vocabulary file {source} must have 2 columns (token, id), "
                f"found {frame.shape[1]}"
            )

        frame.columns = ["token", "id"]

        incomplete = frame.isna().any(axis=1) | (frame["token"] == "")
        if incomplete.any():
            row = int(incomplete.idxmax()) + 1
            raise ResourceError(f"Vocabulary file {source}: missing field in row {row}")

        ids = frame["id"].str.strip()
        bad_ids = ~ids.str.fullmatch(r"[0-9]+")
        if bad_ids.any():
            row = int(bad_ids.idxmax()) + 1
            raise ResourceError(
                f"Vocabulary file {source}: id '{frame['id'].iloc[row - 1]}' "
                f"in row {row} is not a non-negative integer"
            )
        try:
            frame["id"] = ids.astype("int64")
        except (OverflowError, ValueError) as exc:
            raise ResourceError(f"Vocabulary file {source}: id out of range: {exc}") from exc

        unique = frame.drop_duplicates(subset="token", keep="first")
        duplicates = len(frame) - len(unique)
        if duplicates:
            logger.warning(
                f"Vocabulary file {source}: {duplicates} duplicate tokens ignored "
                f"(first occurrence kept)"
            )

        mapping = dict(zip(unique["token"].tolist(), unique["id"].tolist()))
        vocabulary = cls(mapping, unknown_id=unknown_id, pad_id=pad_id)

        logger.info(f"Vocabulary loaded from {source}: {len(vocabulary)} tokens")
        return vocabulary
