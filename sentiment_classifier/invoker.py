"""
Model invocation for the sentiment pipeline.

The pretrained network is treated as an opaque scoring function: a
``ScoringModel`` declares the shapes of its input and output tensors and
maps a batch of id vectors to a batch of class probabilities. The
``ModelInvoker`` checks the declared shapes once, when it is built, and
then feeds single feature vectors through the model.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
import torch

from .errors import ContractViolation, ModelError, ResourceError
from .features import FEATURE_LENGTH

logger = logging.getLogger("sentiment_classifier")


NUM_CLASSES = 2
INPUT_NAME = "Features"
OUTPUT_NAME = "Prediction/Softmax"
ARTIFACT_FILE = "model.pt"
SIGNATURE_FILE = "signature.json"
DYNAMIC_DIM = -1
INPUT_DTYPE = "int64"
OUTPUT_DTYPE = "float32"


@dataclass(frozen=True)
class ModelSignature:
    """Declared names, shapes and element types of a model's input and output tensors."""

    input_name: str
    input_shape: tuple[int, ...]
    output_name: str
    output_shape: tuple[int, ...]
    input_dtype: str = INPUT_DTYPE
    output_dtype: str = OUTPUT_DTYPE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModelSignature":
        return cls(
            input_name=str(data["input_name"]),
            input_shape=tuple(int(dim) for dim in data["input_shape"]),
            output_name=str(data["output_name"]),
            output_shape=tuple(int(dim) for dim in data["output_shape"]),
            input_dtype=np.dtype(data.get("input_dtype", INPUT_DTYPE)).name,
            output_dtype=np.dtype(data.get("output_dtype", OUTPUT_DTYPE)).name,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "input_name": self.input_name,
            "input_shape": list(self.input_shape),
            "input_dtype": self.input_dtype,
            "output_name": self.output_name,
            "output_shape": list(self.output_shape),
            "output_dtype": self.output_dtype,
        }

    @property
    def has_dynamic_batch(self) -> bool:
        return self.input_shape[0] == DYNAMIC_DIM


class ScoringModel(ABC):
    """Anything that maps a batch of id vectors to class probabilities."""

    @property
    @abstractmethod
    def signature(self) -> ModelSignature:
        """Declared input/output tensors."""
        pass

    @abstractmethod
    def score(self, batch: np.ndarray) -> np.ndarray:
        """
        Score a batch of feature vectors.

        Args:
            batch: Integer array [batch_size, feature_length]

        Returns:
            Probability array [batch_size, num_classes]
        """
        pass


class TorchScriptModel(ScoringModel):
    """
    Scoring model backed by a TorchScript artifact.

    The artifact directory holds ``model.pt`` and a ``signature.json``
    describing its tensors.
    """

    def __init__(
        self,
        module: torch.jit.ScriptModule,
        signature: ModelSignature,
        device: torch.device | None = None,
    ):
        self.module = module
        self.device = device or torch.device("cpu")
        self._signature = signature

        self.module.to(self.device)
        self.module.eval()

    @property
    def signature(self) -> ModelSignature:
        return self._signature

    def score(self, batch: np.ndarray) -> np.ndarray:
        input_ids = torch.from_numpy(np.array(batch, dtype=np.int64)).to(self.device)

        with torch.inference_mode():
            output = self.module(input_ids)

        return output.detach().cpu().numpy()

    def verify(self) -> None:
        """
        Run one all-zero batch through the module and compare the output
        shape and element type with the declared ones.

        Raises:
            ModelError: If the module fails or returns an undeclared shape or type
        """
        input_shape = tuple(1 if dim == DYNAMIC_DIM else dim for dim in self._signature.input_shape)
        expected = tuple(1 if dim == DYNAMIC_DIM else dim for dim in self._signature.output_shape)

        try:
            output = self.score(np.zeros(input_shape, dtype=self._signature.input_dtype))
        except (RuntimeError, ValueError) as exc:
            raise ModelError(f"Model failed on input of shape {input_shape}: {exc}") from exc

        if tuple(output.shape) != expected:
            raise ModelError(
                f"Model output shape {tuple(output.shape)} does not match "
                f"declared shape {expected}"
            )
        if output.dtype.name != self._signature.output_dtype:
            raise ModelError(
                f"Model output type {output.dtype.name} does not match "
                f"declared type {self._signature.output_dtype}"
            )

    @classmethod
    def load(
        cls,
        model_path: str | Path,
        device: torch.device | None = None,
    ) -> "TorchScriptModel":
        """
        Load a TorchScript artifact.

        Args:
            model_path: Artifact directory
            device: Device to run on

        Returns:
            Loaded and verified model

        Raises:
            ResourceError: If the artifact files are missing or unreadable
            ModelError: If the module's behaviour contradicts its signature
        """
        model_path = Path(model_path)
        artifact_path = model_path / ARTIFACT_FILE
        signature_path = model_path / SIGNATURE_FILE

        for path in (artifact_path, signature_path):
            if not path.is_file():
                raise ResourceError(f"Model artifact file not found: {path}")

        try:
            with open(signature_path, "r", encoding="utf-8") as f:
                signature = ModelSignature.from_dict(json.load(f))
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            raise ResourceError(f"Invalid model signature {signature_path}: {exc}") from exc

        device = device or torch.device("cpu")
        try:
            module = torch.jit.load(str(artifact_path), map_location=device)
        except (OSError, RuntimeError, ValueError) as exc:
            raise ResourceError(f"Cannot load model artifact {artifact_path}: {exc}") from exc

        model = cls(module, signature, device)
        model.verify()

        logger.info(f"Model loaded from {model_path}")
        return model


class ModelInvoker:
    """
    Contract wrapper around a scoring model.

    Holds nothing but a reference to the model, so one instance can serve
    repeated and concurrent requests.
    """

    def __init__(
        self,
        model: ScoringModel,
        feature_length: int = FEATURE_LENGTH,
        num_classes: int = NUM_CLASSES,
        input_name: str = INPUT_NAME,
        output_name: str = OUTPUT_NAME,
    ):
        """
        Args:
            model: Loaded scoring model
            feature_length: Expected feature vector length
            num_classes: Expected number of output classes
            input_name: Expected name of the input tensor
            output_name: Expected name of the output tensor

        Raises:
            ModelError: If the model's signature does not fit these values
        """
        self.model = model
        self.feature_length = feature_length
        self.num_classes = num_classes
        self.input_name = input_name
        self.output_name = output_name

        self._check_signature(model.signature)

    def _check_signature(self, signature: ModelSignature) -> None:
        if signature.input_name != self.input_name:
            raise ModelError(
                f"Model has no input tensor '{self.input_name}' "
                f"(declares '{signature.input_name}')"
            )
        if signature.output_name != self.output_name:
            raise ModelError(
                f"Model has no output tensor '{self.output_name}' "
                f"(declares '{signature.output_name}')"
            )

        if len(signature.input_shape) != 2 or len(signature.output_shape) != 2:
            raise ModelError(
                f"Expected [batch, dim] tensors, got input {signature.input_shape} "
                f"and output {signature.output_shape}"
            )

        input_batch, input_dim = signature.input_shape
        output_batch, output_dim = signature.output_shape

        if input_batch not in (1, DYNAMIC_DIM) or output_batch != input_batch:
            raise ModelError(
                f"Unsupported batch dimensions: input {input_batch}, output {output_batch}"
            )
        if input_dim != self.feature_length:
            raise ModelError(
                f"Model expects {input_dim} features, pipeline produces {self.feature_length}"
            )
        if output_dim != self.num_classes:
            raise ModelError(
                f"Model outputs {output_dim} classes, expected {self.num_classes}"
            )

        if not np.issubdtype(np.dtype(signature.input_dtype), np.integer):
            raise ModelError(f"Model input type {signature.input_dtype} is not an integer type")
        if not np.issubdtype(np.dtype(signature.output_dtype), np.floating):
            raise ModelError(f"Model output type {signature.output_dtype} is not a floating type")

    def describe(self) -> list[dict[str, Any]]:
        """Declared tensors of the wrapped model."""
        signature = self.model.signature
        return [
            {
                "name": signature.input_name,
                "type": signature.input_dtype,
                "shape": signature.input_shape,
            },
            {
                "name": signature.output_name,
                "type": signature.output_dtype,
                "shape": signature.output_shape,
            },
        ]

    def predict(self, features: np.ndarray) -> np.ndarray:
        """
        Score a single feature vector.

        Args:
            features: Id vector of length feature_length

        Returns:
            float64 probability vector of length num_classes

        Raises:
            ContractViolation: If the feature vector has the wrong shape
        """
        features = np.asarray(features)
        if features.ndim != 1 or features.shape[0] != self.feature_length:
            raise ContractViolation(
                f"Feature vector must have shape ({self.feature_length},), "
                f"got {features.shape}"
            )

        output = self.model.score(features.reshape(1, -1))
        return np.asarray(output, dtype=np.float64).reshape(-1)

    def predict_batch(self, features: np.ndarray) -> np.ndarray:
        """
        Score several feature vectors.

        Args:
            features: Id array [batch_size, feature_length]

        Returns:
            float64 probability array [batch_size, num_classes]
        """
        features = np.asarray(features)
        if features.ndim != 2 or features.shape[1] != self.feature_length:
            raise ContractViolation(
                f"Feature batch must have shape (n, {self.feature_length}), "
                f"got {features.shape}"
            )

        if len(features) == 0:
            return np.empty((0, self.num_classes), dtype=np.float64)

        if self.model.signature.has_dynamic_batch:
            output = self.model.score(features)
            return np.asarray(output, dtype=np.float64).reshape(len(features), -1)

        return np.stack([self.predict(row) for row in features])
