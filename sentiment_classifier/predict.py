"""
Prediction script for the sentiment pipeline.

Usage:
    python -m sentiment_classifier.predict --model_path models/sentiment_model
    python -m sentiment_classifier.predict --text "this film is really good" --text "awful"
    python -m sentiment_classifier.predict --input_path data.csv --output_path preds.csv
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import pandas as pd
from tqdm import tqdm

from .errors import SentimentPipelineError
from .pipeline import SentimentPipeline
from .utils import load_config, setup_logging

logger = logging.getLogger("sentiment_classifier")

DEFAULT_REVIEW = "this film is really good"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sentiment prediction")
    parser.add_argument("--model_path", type=str, default=None, help="Model directory")
    parser.add_argument("--config", type=str, default=None, help="YAML configuration file")
    parser.add_argument("--text", type=str, action="append", default=None, help="Text to classify")
    parser.add_argument("--input_path", type=str, default=None, help="Input CSV with a text column")
    parser.add_argument("--output_path", type=str, default=None, help="Output CSV path")
    parser.add_argument("--text_column", type=str, default="text", help="Text column name")
    parser.add_argument("--batch_size", type=int, default=32, help="Batch size")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser.parse_args(argv)


def predict_csv(
    pipeline: SentimentPipeline,
    input_path: str,
    output_path: str,
    text_column: str = "text",
    batch_size: int = 32,
) -> pd.DataFrame:
    """
    Classify every row of a CSV column and write the results next to it.

    Missing values are classified as empty text.
    """
    logger.info(f"Loading data from {input_path}")
    df = pd.read_csv(input_path)
    texts = df[text_column].fillna("").astype(str).tolist()

    logger.info(f"Predicting {len(texts)} samples...")
    results = []
    for i in tqdm(range(0, len(texts), batch_size), desc="Predicting"):
        for result in pipeline.classify_batch(texts[i:i + batch_size]):
            results.append({
                "prediction": result.label,
                "confidence": result.confidence,
                "prob_negative": result.probabilities.get("negative", 0.0),
                "prob_positive": result.probabilities.get("positive", 0.0),
            })

    output_df = pd.concat([df.reset_index(drop=True), pd.DataFrame(results)], axis=1)
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    output_df.to_csv(output_path, index=False)

    positive = sum(1 for r in results if r["prediction"] == "positive")
    logger.info(f"Done! Positive: {positive}, Negative: {len(results) - positive}")
    logger.info(f"Saved to {output_path}")

    return output_df


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    config = load_config(args.config) if args.config else {}

    log_config = config.get("logging", {})
    setup_logging(
        log_level="DEBUG" if args.verbose else log_config.get("level", "INFO"),
        log_file=log_config.get("file"),
    )

    model_path = args.model_path or config.get("model", {}).get("path", "models/sentiment_model")

    logger.info("Loading model...")
    try:
        pipeline = SentimentPipeline.from_pretrained(model_path, config)
    except SentimentPipelineError as exc:
        logger.error(f"Initialization failed: {exc}")
        return 1

    if args.input_path:
        if not args.output_path:
            logger.error("--output_path is required with --input_path")
            return 2
        predict_csv(pipeline, args.input_path, args.output_path, args.text_column, args.batch_size)
        return 0

    for text in args.text or [DEFAULT_REVIEW]:
        result = pipeline.classify(text)
        print(json.dumps({"text": text, **result.to_dict()}))

    return 0


if __name__ == "__main__":
    sys.exit(main())
