from typing import Any

import httpx

from docflow.inference.client_base import BaseInferenceClient
from docflow.inference.exceptions import InferenceBackendError
from docflow.logging.logger import Log

_STATUS_TIMEOUT_SECONDS = 5.0
_MAX_ERROR_BODY_CHARS = 500
_MIN_REQUEST_TIMEOUT_SECONDS = 1.0


class OllamaClientAdapter(BaseInferenceClient):
    """Vision model client for the Ollama /api/generate endpoint."""

    def __init__(
        self,
        *,
        base_url: str,
        model: str,
        timeout_seconds: float,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout_seconds
        self._transport = transport

    @property
    def model(self) -> str:
        return self._model

    def generate(
        self,
        *,
        prompt: str,
        images: list[str],
        timeout_seconds: float | None = None,
    ) -> str:
        endpoint = f"{self._base_url}/api/generate"
        payload = {
            "model": self._model,
            "prompt": prompt,
            "images": images,
            "stream": False,
        }
        Log.info("Sending request to inference backend", model=self._model, endpoint=endpoint)
        try:
            with self._client(self._request_timeout(timeout_seconds)) as client:
                response = client.post(endpoint, json=payload)
        except httpx.HTTPError as exc:
            raise InferenceBackendError(
                f"Failed to communicate with inference backend: {exc}"
            ) from exc

        if not response.is_success:
            body = response.text[:_MAX_ERROR_BODY_CHARS]
            raise InferenceBackendError(
                "Failed to communicate with inference backend: "
                f"request failed with status {response.status_code}: {body}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise InferenceBackendError(
                "Failed to communicate with inference backend: response is not JSON"
            ) from exc

        content = data.get("response") if isinstance(data, dict) else None
        if not isinstance(content, str):
            raise InferenceBackendError(
                "Failed to communicate with inference backend: "
                "invalid response format, missing 'response' field"
            )
        return content

    def check_connection(self) -> bool:
        try:
            with self._client(_STATUS_TIMEOUT_SECONDS) as client:
                response = client.get(f"{self._base_url}/api/tags")
        except httpx.HTTPError as exc:
            Log.error(f"Inference backend connection test failed: {exc}")
            return False
        return response.is_success

    def list_models(self) -> list[dict[str, Any]]:
        try:
            with self._client(_STATUS_TIMEOUT_SECONDS) as client:
                response = client.get(f"{self._base_url}/api/tags")
            if not response.is_success:
                return []
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            Log.error(f"Failed to list inference backend models: {exc}")
            return []
        models = data.get("models") if isinstance(data, dict) else None
        return models if isinstance(models, list) else []

    def _request_timeout(self, timeout_seconds: float | None) -> float:
        if timeout_seconds is None:
            return self._timeout
        return min(self._timeout, max(timeout_seconds, _MIN_REQUEST_TIMEOUT_SECONDS))

    def _client(self, timeout: float) -> httpx.Client:
        return httpx.Client(
            timeout=timeout,
            transport=self._transport,
            headers={"Content-Type": "application/json"},
        )
