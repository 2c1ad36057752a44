"""
Request-level sentiment classification.

Composes tokenizer, feature encoder, model invoker and decision into a single
``classify(text)`` call. Vocabulary and model are loaded once and shared
read-only; each call owns its intermediate token, feature and probability
buffers.
"""

import logging
from pathlib import Path
from typing import Any, Sequence

import torch

from .decision import SentimentResult, decide
from .errors import ContractViolation
from .features import FEATURE_LENGTH, FeatureEncoder
from .invoker import INPUT_NAME, OUTPUT_NAME, ModelInvoker, TorchScriptModel
from .tokenizer import Tokenizer
from .utils import resolve_device
from .vocabulary import DEFAULT_PAD_ID, DEFAULT_UNKNOWN_ID, VOCABULARY_FILE, VocabularyTable

logger = logging.getLogger("sentiment_classifier")


def validate_text_input(text: Any) -> None:
    """
    Check that a request carries text.

    Empty and blank strings are accepted; they encode to an all-pad vector.

    Raises:
        ContractViolation: If text is not a string
    """
    if not isinstance(text, str):
        raise ContractViolation(f"Input must be string, got {type(text).__name__}")


class SentimentPipeline:
    """
    End-to-end sentiment classifier for raw review text.

    Example:
        pipeline = SentimentPipeline.from_pretrained("models/sentiment_model")
        result = pipeline.classify("this film is really good")
    """

    def __init__(
        self,
        vocabulary: VocabularyTable,
        invoker: ModelInvoker,
        tokenizer: Tokenizer | None = None,
    ):
        """
        Args:
            vocabulary: Loaded vocabulary table
            invoker: Model invoker with a checked signature
            tokenizer: Tokenizer to use; defaults to one matching the
                vocabulary's casing
        """
        self.vocabulary = vocabulary
        self.invoker = invoker
        self.tokenizer = tokenizer or Tokenizer.for_vocabulary(vocabulary)
        self.encoder = FeatureEncoder(vocabulary, feature_length=invoker.feature_length)

    def classify(self, text: str) -> SentimentResult:
        """
        Classify a single text.

        Args:
            text: Raw review text

        Returns:
            SentimentResult with label and confidence

        Raises:
            ContractViolation: If text is not a string or a component
                boundary check fails
        """
        validate_text_input(text)

        tokens = self.tokenizer.tokenize(text)
        features = self.encoder.encode(tokens)
        probabilities = self.invoker.predict(features)
        result = decide(probabilities)

        logger.debug(
            f"Classified {len(tokens)} tokens as {result.label} "
            f"(confidence {result.confidence:.4f})"
        )
        return result

    def classify_batch(self, texts: Sequence[str]) -> list[SentimentResult]:
        """
        Classify several texts.

        Args:
            texts: Raw review texts

        Returns:
            One SentimentResult per text, in input order
        """
        for i, text in enumerate(texts):
            try:
                validate_text_input(text)
            except ContractViolation as exc:
                raise ContractViolation(f"Invalid input at index {i}: {exc}") from exc

        token_sequences = [self.tokenizer.tokenize(text) for text in texts]
        features = self.encoder.encode_batch(token_sequences)
        probabilities = self.invoker.predict_batch(features)

        return [decide(row) for row in probabilities]

    @classmethod
    def from_pretrained(
        cls,
        model_path: str | Path,
        config: dict[str, Any] | None = None,
        device: torch.device | None = None,
    ) -> "SentimentPipeline":
        """
        Load vocabulary and model artifact from a model directory.

        Args:
            model_path: Directory holding the artifact and vocabulary file
            config: Optional configuration dictionary
            device: Device to run on (overrides config)

        Returns:
            Ready-to-use SentimentPipeline

        Raises:
            ResourceError: If the vocabulary or artifact cannot be loaded
            ModelError: If the model's shapes don't fit the pipeline
        """
        config = config or {}
        model_config = config.get("model", {})
        vocab_config = config.get("vocabulary", {})
        feature_config = config.get("features", {})

        model_path = Path(model_path)

        vocab_file = Path(vocab_config.get("file", VOCABULARY_FILE))
        if not vocab_file.is_absolute():
            vocab_file = model_path / vocab_file

        vocabulary = VocabularyTable.load(
            vocab_file,
            separator=vocab_config.get("separator", ","),
            unknown_id=vocab_config.get("unknown_id", DEFAULT_UNKNOWN_ID),
            pad_id=vocab_config.get("pad_id", DEFAULT_PAD_ID),
        )

        device = device or resolve_device(model_config.get("device", "cpu"))
        model = TorchScriptModel.load(model_path, device)

        invoker = ModelInvoker(
            model,
            feature_length=feature_config.get("length", FEATURE_LENGTH),
            input_name=model_config.get("input_name", INPUT_NAME),
            output_name=model_config.get("output_name", OUTPUT_NAME),
        )

        for tensor in invoker.describe():
            logger.info(f"Name: {tensor['name']}, Type: {tensor['type']}, Shape: {tensor['shape']}")

        return cls(vocabulary, invoker)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "SentimentPipeline":
        """
        Load a pipeline from a configuration dictionary.

        Raises:
            ValueError: If ``model.path`` is not set
        """
        model_path = config.get("model", {}).get("path")
        if not model_path:
            raise ValueError("Configuration must set model.path")

        return cls.from_pretrained(model_path, config)
