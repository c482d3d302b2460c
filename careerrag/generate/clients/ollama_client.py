# Client for Ollama local inference: POST /api/generate, non-streaming.

from typing import Optional

import requests

from careerrag.errors import ProviderError, ProviderTimeout, ProviderUnavailable

from ..types import ModelParams


class OllamaClient:
    def __init__(self, model: str = "mistral:7b-instruct", host: str = "http://localhost:11434"):
        self.model = model
        self.host = host.rstrip("/")

    def complete(self, prompt: str, timeout_ms: int, params: Optional[ModelParams] = None) -> str:
        params = params or ModelParams()
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": float(params.temperature or 0.3),
                "num_predict": int(params.max_tokens or 1000),
            },
        }
        url = f"{self.host}/api/generate"
        try:
            resp = requests.post(url, json=payload, timeout=timeout_ms / 1000)
            resp.raise_for_status()
            data = resp.json()
        except requests.Timeout as e:
            raise ProviderTimeout(f"Ollama did not answer within {timeout_ms} ms") from e
        except requests.RequestException as e:
            raise ProviderUnavailable(f"Ollama request failed: {e}") from e
        except ValueError as e:
            raise ProviderError(f"Ollama returned invalid JSON: {e}") from e
        return (data.get("response") or "").strip()
