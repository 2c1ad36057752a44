"""
Reference network and TorchScript artifact export.

The pipeline never looks inside the network; this module only exists to
package weights into the artifact format that ``TorchScriptModel`` loads.
"""

import json
import logging
from pathlib import Path
from typing import Any

import torch
import torch.nn as nn
import torch.nn.functional as F

from .features import FEATURE_LENGTH
from .invoker import (
    ARTIFACT_FILE,
    DYNAMIC_DIM,
    INPUT_DTYPE,
    INPUT_NAME,
    OUTPUT_NAME,
    SIGNATURE_FILE,
    ModelSignature,
)

logger = logging.getLogger("sentiment_classifier")


class SentimentNetwork(nn.Module):
    """
    LSTM-based sentiment network with a softmax output.

    Architecture:
    - Embedding layer
    - LSTM/BiLSTM layers
    - Fully connected classification head
    - Softmax over classes
    """

    def __init__(
        self,
        vocab_size: int,
        embedding_dim: int = 128,
        hidden_dim: int = 256,
        num_layers: int = 1,
        dropout: float = 0.3,
        bidirectional: bool = True,
        num_classes: int = 2,
        padding_idx: int = 0,
    ):
        """
        Initialize the network.

        Args:
            vocab_size: Number of embedding rows (largest vocabulary id + 1)
            embedding_dim: Dimension of word embeddings
            hidden_dim: Dimension of LSTM hidden state
            num_layers: Number of LSTM layers
            dropout: Dropout probability
            bidirectional: Whether to use bidirectional LSTM
            num_classes: Number of output classes
            padding_idx: Id of the padding token
        """
        super().__init__()

        self.vocab_size = vocab_size
        self.embedding_dim = embedding_dim
        self.hidden_dim = hidden_dim
        self.num_layers = num_layers
        self.bidirectional = bidirectional
        self.num_classes = num_classes

        self.embedding = nn.Embedding(
            num_embeddings=vocab_size,
            embedding_dim=embedding_dim,
            padding_idx=padding_idx,
        )

        self.lstm = nn.LSTM(
            input_size=embedding_dim,
            hidden_size=hidden_dim,
            num_layers=num_layers,
            batch_first=True,
            dropout=dropout if num_layers > 1 else 0,
            bidirectional=bidirectional,
        )

        lstm_output_dim = hidden_dim * 2 if bidirectional else hidden_dim

        self.dropout = nn.Dropout(dropout)
        self.fc = nn.Linear(lstm_output_dim, num_classes)

    def forward(self, input_ids: torch.Tensor) -> torch.Tensor:
        """
        Args:
            input_ids: Token ids [batch_size, seq_length]

        Returns:
            Class probabilities [batch_size, num_classes]
        """
        embedded = self.dropout(self.embedding(input_ids))

        _, (hidden, _) = self.lstm(embedded)

        if self.bidirectional:
            hidden = torch.cat((hidden[-2], hidden[-1]), dim=1)
        else:
            hidden = hidden[-1]

        logits = self.fc(self.dropout(hidden))
        return F.softmax(logits, dim=-1)


def create_network_from_config(config: dict[str, Any], vocab_size: int) -> SentimentNetwork:
    """
    Create network from configuration dictionary.

    Args:
        config: Configuration with an optional ``model`` section
        vocab_size: Number of embedding rows

    Returns:
        Initialized network
    """
    model_config = config.get("model", {})

    return SentimentNetwork(
        vocab_size=model_config.get("vocab_size", vocab_size),
        embedding_dim=model_config.get("embedding_dim", 128),
        hidden_dim=model_config.get("hidden_dim", 256),
        num_layers=model_config.get("num_layers", 1),
        dropout=model_config.get("dropout", 0.3),
        bidirectional=model_config.get("bidirectional", True),
        num_classes=model_config.get("num_classes", 2),
        padding_idx=config.get("vocabulary", {}).get("pad_id", 0),
    )


def export_artifact(
    network: nn.Module,
    save_path: str | Path,
    feature_length: int = FEATURE_LENGTH,
    num_classes: int = 2,
    input_name: str = INPUT_NAME,
    output_name: str = OUTPUT_NAME,
) -> Path:
    """
    Trace a network to TorchScript and write it with its signature.

    Args:
        network: Network mapping [batch, feature_length] ids to probabilities
        save_path: Artifact directory
        feature_length: Length of the input id vectors
        num_classes: Number of output classes
        input_name: Name declared for the input tensor
        output_name: Name declared for the output tensor

    Returns:
        Artifact directory
    """
    save_path = Path(save_path)
    save_path.mkdir(parents=True, exist_ok=True)

    network.eval()
    example_input = torch.zeros((1, feature_length), dtype=torch.long)

    with torch.no_grad():
        traced = torch.jit.trace(network, example_input)
        example_output = traced(example_input)
    traced.save(str(save_path / ARTIFACT_FILE))

    signature = ModelSignature(
        input_name=input_name,
        input_shape=(DYNAMIC_DIM, feature_length),
        output_name=output_name,
        output_shape=(DYNAMIC_DIM, num_classes),
        input_dtype=INPUT_DTYPE,
        output_dtype=example_output.cpu().numpy().dtype.name,
    )
    with open(save_path / SIGNATURE_FILE, "w", encoding="utf-8") as f:
        json.dump(signature.to_dict(), f, indent=2)

    logger.info(f"Model artifact exported to {save_path}")
    return save_path
