from .echo_dev_client import EchoDevClient
from .ollama_client import OllamaClient
from .openai_client import OpenAIClient

__all__ = ["EchoDevClient", "OllamaClient", "OpenAIClient"]
