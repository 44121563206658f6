from abc import ABC, abstractmethod
from typing import Any


class BaseInferenceClient(ABC):
    """Contract for provider-specific vision model clients."""

    @abstractmethod
    def generate(
        self,
        *,
        prompt: str,
        images: list[str],
        timeout_seconds: float | None = None,
    ) -> str:
        """Send one prompt with base64 images and return the model's raw text.

        ``timeout_seconds`` caps the request below the configured timeout.

        Raises:
            InferenceBackendError: on transport failure or an invalid envelope.
        """

    def check_connection(self) -> bool:
        """Return True when the backend answers. Never raises."""
        return True

    def list_models(self) -> list[dict[str, Any]]:
        """Return the models the backend can serve. Never raises."""
        return []
