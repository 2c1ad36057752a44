"""
Pytest configuration and fixtures for sentiment pipeline tests.
"""

import logging
import random
import sys
from pathlib import Path

import numpy as np
import pytest
import torch

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sentiment_classifier.features import FEATURE_LENGTH
from sentiment_classifier.invoker import ModelInvoker, ModelSignature, ScoringModel
from sentiment_classifier.model import SentimentNetwork, export_artifact
from sentiment_classifier.pipeline import SentimentPipeline
from sentiment_classifier.vocabulary import VOCABULARY_FILE, VocabularyTable


def set_seed(seed: int) -> None:
    """Seed every random number generator the network initialisation draws from."""
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)


class StubModel(ScoringModel):
    """Deterministic scoring model returning the same distribution for every row."""

    def __init__(self, probabilities=(0.35, 0.65), signature: ModelSignature | None = None):
        self.probabilities = np.asarray(probabilities, dtype=np.float64)
        self._signature = signature or ModelSignature(
            input_name="Features",
            input_shape=(1, FEATURE_LENGTH),
            output_name="Prediction/Softmax",
            output_shape=(1, len(self.probabilities)),
        )
        self.calls: list[np.ndarray] = []

    @property
    def signature(self) -> ModelSignature:
        return self._signature

    def score(self, batch: np.ndarray) -> np.ndarray:
        self.calls.append(np.array(batch))
        return np.tile(self.probabilities, (len(batch), 1))


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by setup_logging during a test."""
    yield
    logger = logging.getLogger("sentiment_classifier")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_stub_model():
    """Factory for stub scoring models."""
    return StubModel


@pytest.fixture
def word_index() -> dict[str, int]:
    """Small lowercase vocabulary."""
    return {"this": 1, "film": 2, "is": 3, "really": 4, "good": 5}


@pytest.fixture
def vocabulary(word_index) -> VocabularyTable:
    return VocabularyTable(word_index)


@pytest.fixture
def vocab_file(tmp_path, word_index) -> Path:
    """Vocabulary CSV in the token,id format."""
    path = tmp_path / VOCABULARY_FILE
    path.write_text("".join(f"{token},{idx}\n" for token, idx in word_index.items()))
    return path


@pytest.fixture
def stub_model() -> StubModel:
    return StubModel()


@pytest.fixture
def invoker(stub_model) -> ModelInvoker:
    return ModelInvoker(stub_model)


@pytest.fixture
def pipeline(vocabulary, invoker) -> SentimentPipeline:
    return SentimentPipeline(vocabulary, invoker)


@pytest.fixture
def network() -> SentimentNetwork:
    """Tiny network for artifact tests."""
    set_seed(42)
    return SentimentNetwork(
        vocab_size=10,
        embedding_dim=8,
        hidden_dim=8,
        num_layers=1,
        dropout=0.0,
        bidirectional=False,
    )


@pytest.fixture
def model_dir(tmp_path, network, word_index) -> Path:
    """Exported model directory with artifact, signature and vocabulary."""
    path = tmp_path / "sentiment_model"
    export_artifact(network, path)
    (path / VOCABULARY_FILE).write_text(
        "".join(f"{token},{idx}\n" for token, idx in word_index.items())
    )
    return path


@pytest.fixture
def device() -> torch.device:
    """Get test device."""
    return torch.device("cpu")
