class InferenceError(Exception):
    """Base exception for model-serving failures."""


class InferenceBackendError(InferenceError):
    """Raised when the backend is unreachable or returns an invalid envelope."""


class ResponseDecodeError(InferenceError):
    """Raised when model output cannot be used as a JSON object."""
