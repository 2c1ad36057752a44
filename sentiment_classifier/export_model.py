"""
Package trained weights as a model directory the pipeline can load.

Usage:
    python -m sentiment_classifier.export_model --weights weights.bin \
        --vocabulary imdb_word_index.csv --output_path models/sentiment_model
    python -m sentiment_classifier.export_model --weights weights.bin \
        --vocabulary imdb_word_index.csv --config configs/pipeline_config.yaml
"""

import argparse
import logging
import pickle
import shutil
import sys
from pathlib import Path

import torch

from .errors import ModelError, ResourceError, SentimentPipelineError
from .features import FEATURE_LENGTH
from .invoker import INPUT_NAME, OUTPUT_NAME
from .model import create_network_from_config, export_artifact
from .pipeline import SentimentPipeline
from .utils import load_config, setup_logging
from .vocabulary import DEFAULT_PAD_ID, DEFAULT_UNKNOWN_ID, VOCABULARY_FILE, VocabularyTable

logger = logging.getLogger("sentiment_classifier")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export weights to a TorchScript model directory")
    parser.add_argument("--weights", type=str, required=True, help="State dict saved with torch.save")
    parser.add_argument("--vocabulary", type=str, required=True, help="token,id vocabulary file")
    parser.add_argument("--output_path", type=str, default=None, help="Output model directory")
    parser.add_argument("--config", type=str, default=None, help="YAML configuration file")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser.parse_args(argv)


def export(
    weights_path: str | Path,
    vocabulary_path: str | Path,
    output_path: str | Path,
    config: dict | None = None,
) -> Path:
    """
    Build the network, load weights, export the artifact and copy the
    vocabulary next to it.

    Returns:
        Model directory

    Raises:
        ResourceError: If the vocabulary or weights file cannot be read
        ModelError: If the weights do not fit the configured network
    """
    config = config or {}
    model_config = config.get("model", {})
    vocab_config = config.get("vocabulary", {})
    feature_length = config.get("features", {}).get("length", FEATURE_LENGTH)

    vocabulary = VocabularyTable.load(
        vocabulary_path,
        separator=vocab_config.get("separator", ","),
        unknown_id=vocab_config.get("unknown_id", DEFAULT_UNKNOWN_ID),
        pad_id=vocab_config.get("pad_id", DEFAULT_PAD_ID),
    )

    network = create_network_from_config(config, vocab_size=vocabulary.max_id + 1)
    try:
        state_dict = torch.load(weights_path, map_location=torch.device("cpu"))
    except (OSError, EOFError, RuntimeError, pickle.UnpicklingError) as exc:
        raise ResourceError(f"Cannot load weights {weights_path}: {exc}") from exc

    try:
        network.load_state_dict(state_dict)
    except (RuntimeError, TypeError) as exc:
        raise ModelError(f"Weights {weights_path} do not fit the configured network: {exc}") from exc

    output_path = export_artifact(
        network,
        output_path,
        feature_length=feature_length,
        num_classes=network.num_classes,
        input_name=model_config.get("input_name", INPUT_NAME),
        output_name=model_config.get("output_name", OUTPUT_NAME),
    )

    vocab_dst = output_path / Path(vocab_config.get("file", VOCABULARY_FILE)).name
    shutil.copy(vocabulary_path, vocab_dst)
    logger.info(f"Vocabulary copied to {vocab_dst}")

    logger.info("Verifying exported model...")
    pipeline_config = dict(config)
    pipeline_config["vocabulary"] = {**vocab_config, "file": vocab_dst.name}
    SentimentPipeline.from_pretrained(output_path, pipeline_config, device=torch.device("cpu"))
    logger.info("Export completed successfully!")

    return output_path


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    config = load_config(args.config) if args.config else {}

    log_config = config.get("logging", {})
    setup_logging(
        log_level="DEBUG" if args.verbose else log_config.get("level", "INFO"),
        log_file=log_config.get("file"),
    )

    output_path = args.output_path or config.get("model", {}).get("path", "models/sentiment_model")

    try:
        export(args.weights, args.vocabulary, output_path, config)
    except SentimentPipelineError as exc:
        logger.error(f"Export failed: {exc}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
