"""
Sentiment Classifier Package

Fixed-vocabulary, fixed-length feature pipeline for classifying review text
with a pretrained neural network.
"""
from .decision import SentimentResult, decide
from .errors import ContractViolation, ModelError, ResourceError, SentimentPipelineError
from .features import FEATURE_LENGTH, FeatureEncoder, encode
from .invoker import ModelInvoker, ModelSignature, ScoringModel, TorchScriptModel
from .pipeline import SentimentPipeline
from .tokenizer import Tokenizer
from .vocabulary import VocabularyTable

__all__ = [
    "FEATURE_LENGTH",
    "ContractViolation",
    "FeatureEncoder",
    "ModelError",
    "ModelInvoker",
    "ModelSignature",
    "ResourceError",
    "ScoringModel",
    "SentimentPipeline",
    "SentimentPipelineError",
    "SentimentResult",
    "Tokenizer",
    "TorchScriptModel",
    "VocabularyTable",
    "decide",
    "encode",
]
