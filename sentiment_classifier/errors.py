"""
Exception types raised by the sentiment pipeline.
"""


class SentimentPipelineError(Exception):
    """Base class for all pipeline errors."""
    pass


class ResourceError(SentimentPipelineError):
    """Vocabulary or model artifact is missing, unreadable or malformed."""
    pass


class ModelError(SentimentPipelineError):
    """Loaded model does not match the pipeline's input/output contract."""
    pass


class ContractViolation(SentimentPipelineError):
    """An invariant was broken at a component boundary."""
    pass
