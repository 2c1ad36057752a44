"""
Tests for vocabulary module.

Tests cover:
- Lookup of known and unknown tokens
- Loading from delimited files
- Fail-fast handling of malformed files
- Duplicate token policy
"""

import pytest

from sentiment_classifier.errors import ResourceError
from sentiment_classifier.vocabulary import VocabularyTable


class TestLookup:
    """Tests for token lookup."""

    def test_known_token(self, vocabulary):
        """Test that known tokens map to their ids."""
        assert vocabulary.lookup("this") == 1
        assert vocabulary.lookup("good") == 5

    def test_unknown_token_returns_unknown_id(self, vocabulary):
        """Test that lookup is total over strings."""
        for token in ["missing", "", "GOOD", "good!", "\n"]:
            assert vocabulary.lookup(token) == vocabulary.unknown_id

    def test_default_ids(self, vocabulary):
        """Test that pad and unknown ids default to 0."""
        assert vocabulary.unknown_id == 0
        assert vocabulary.pad_id == 0

    def test_custom_unknown_id(self, word_index):
        """Test distinct unknown and pad ids."""
        vocab = VocabularyTable(word_index, unknown_id=1, pad_id=0)
        assert vocab.lookup("missing") == 1
        assert vocab.pad_id == 0

    def test_negative_special_id_rejected(self, word_index):
        """Test that negative special ids are rejected."""
        with pytest.raises(ValueError):
            VocabularyTable(word_index, unknown_id=-1)

    def test_len_and_contains(self, vocabulary):
        """Test container protocol."""
        assert len(vocabulary) == 5
        assert "film" in vocabulary
        assert "movie" not in vocabulary


class TestImmutability:
    """Tests for read-only behaviour."""

    def test_mapping_is_read_only(self, vocabulary):
        """Test that the exposed mapping can't be mutated."""
        with pytest.raises(TypeError):
            vocabulary.mapping["new"] = 10

    def test_source_mapping_changes_not_visible(self, word_index):
        """Test that the table copies its source mapping."""
        vocab = VocabularyTable(word_index)
        word_index["new"] = 10
        assert vocab.lookup("new") == vocab.unknown_id

    def test_is_lowercase(self, vocabulary):
        """Test detection of lowercase vocabularies."""
        assert vocabulary.is_lowercase
        assert not VocabularyTable({"Film": 1, "good": 2}).is_lowercase

    def test_max_id(self, vocabulary):
        """Test largest id."""
        assert vocabulary.max_id == 5


class TestLoad:
    """Tests for loading from files."""

    def test_load_valid_file(self, vocab_file, word_index):
        """Test loading a well-formed file."""
        vocab = VocabularyTable.load(vocab_file)
        assert dict(vocab.mapping) == word_index

    def test_ids_are_python_ints(self, vocab_file):
        """Test that loaded ids are plain ints."""
        vocab = VocabularyTable.load(vocab_file)
        assert all(type(v) is int for v in vocab.mapping.values())

    def test_custom_separator(self, tmp_path):
        """Test loading a tab separated file."""
        path = tmp_path / "vocab.tsv"
        path.write_text("the\t1\nfilm\t2\n")
        vocab = VocabularyTable.load(path, separator="\t")
        assert vocab.lookup("film") == 2

    def test_special_ids_passed_through(self, vocab_file):
        """Test that load forwards special ids."""
        vocab = VocabularyTable.load(vocab_file, unknown_id=7, pad_id=0)
        assert vocab.lookup("missing") == 7

    def test_tokens_that_look_like_missing_values(self, tmp_path):
        """Test that tokens like 'nan' and 'null' are kept as strings."""
        path = tmp_path / "vocab.csv"
        path.write_text("nan,1\nnull,2\nna,3\n")
        vocab = VocabularyTable.load(path)
        assert vocab.lookup("nan") == 1
        assert vocab.lookup("null") == 2
        assert vocab.lookup("na") == 3

    def test_blank_lines_ignored(self, tmp_path):
        """Test that blank lines are skipped."""
        path = tmp_path / "vocab.csv"
        path.write_text("the,1\n\nfilm,2\n")
        assert len(VocabularyTable.load(path)) == 2

    def test_duplicate_tokens_first_wins(self, tmp_path):
        """Test that the first occurrence of a token wins."""
        path = tmp_path / "vocab.csv"
        path.write_text("good,5\nbad,6\ngood,9\n")
        vocab = VocabularyTable.load(path)
        assert vocab.lookup("good") == 5
        assert len(vocab) == 2

    def test_duplicate_ids_allowed(self, tmp_path):
        """Test that different tokens may share an id."""
        path = tmp_path / "vocab.csv"
        path.write_text("good,5\ngreat,5\n")
        vocab = VocabularyTable.load(path)
        assert vocab.lookup("good") == vocab.lookup("great") == 5


class TestLoadFailures:
    """Tests for malformed vocabulary files."""

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises ResourceError."""
        with pytest.raises(ResourceError, match="not found"):
            VocabularyTable.load(tmp_path / "missing.csv")

    def test_empty_file(self, tmp_path):
        """Test that an empty file raises ResourceError."""
        path = tmp_path / "vocab.csv"
        path.write_text("")
        with pytest.raises(ResourceError):
            VocabularyTable.load(path)

    def test_single_column(self, tmp_path):
        """Test that a one-column file raises ResourceError."""
        path = tmp_path / "vocab.csv"
        path.write_text("the\nfilm\n")
        with pytest.raises(ResourceError, match="2 columns"):
            VocabularyTable.load(path)

    def test_too_many_columns(self, tmp_path):
        """Test that three-column rows raise ResourceError."""
        path = tmp_path / "vocab.csv"
        path.write_text("the,1,extra\nfilm,2,extra\n")
        with pytest.raises(ResourceError):
            VocabularyTable.load(path)

    def test_extra_field_in_later_row(self, tmp_path):
        """Test that one bad row fails the whole load."""
        path = tmp_path / "vocab.csv"
        path.write_text("the,1\nfilm,2\nis,3,4\n")
        with pytest.raises(ResourceError):
            VocabularyTable.load(path)

    def test_missing_id(self, tmp_path):
        """Test that a row without an id raises ResourceError."""
        path = tmp_path / "vocab.csv"
        path.write_text("the,1\nfilm\n")
        with pytest.raises(ResourceError):
            VocabularyTable.load(path)

    def test_id_too_large(self, tmp_path):
        """Test that ids beyond the int64 range raise ResourceError."""
        path = tmp_path / "vocab.csv"
        path.write_text("the,1\ngood,99999999999999999999999\n")
        with pytest.raises(ResourceError):
            VocabularyTable.load(path)

    @pytest.mark.parametrize("bad_id", ["one", "1.5", "-3", ""])
    def test_non_integer_id(self, tmp_path, bad_id):
        """Test that non-integer ids raise ResourceError."""
        path = tmp_path / "vocab.csv"
        path.write_text(f"the,1\nfilm,{bad_id}\n")
        with pytest.raises(ResourceError):
            VocabularyTable.load(path)
