from pathlib import Path

from docflow.config.settings import Settings
from docflow.documents.file_loader import FileLoader
from docflow.inference.client_base import BaseInferenceClient
from docflow.inference.example_client_adapter import ExampleClientAdapter
from docflow.inference.model_client import ModelClient
from docflow.inference.ollama_client_adapter import OllamaClientAdapter
from docflow.rendering.factory import RasterizerFactory


class ModelClientFactory:
    """Creates the configured model client."""

    PROVIDERS = ("ollama", "example")

    @classmethod
    def create(cls, settings: Settings, files_root: Path | None = None) -> ModelClient:
        """Create a model client from application settings."""
        return ModelClient(
            client=cls.create_inference_client(settings),
            rasterizer=RasterizerFactory.create(settings),
            file_loader=FileLoader(
                files_root=files_root if files_root is not None else settings.files_root
            ),
        )

    @classmethod
    def create_inference_client(cls, settings: Settings) -> BaseInferenceClient:
        provider = settings.inference_provider.lower()
        if provider == "example":
            return ExampleClientAdapter()
        if provider == "ollama":
            return OllamaClientAdapter(
                base_url=settings.ollama_base_url,
                model=settings.ollama_model,
                timeout_seconds=settings.ollama_timeout_seconds,
            )
        raise ValueError(
            f"Unknown inference provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
