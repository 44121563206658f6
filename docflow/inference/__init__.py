from docflow.inference.decoder import decode_model_json
from docflow.inference.factory import ModelClientFactory
from docflow.inference.model_client import ExtractionTask, ModelClient

__all__ = ["ExtractionTask", "ModelClient", "ModelClientFactory", "decode_model_json"]
