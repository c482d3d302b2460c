# Client for the OpenAI Chat Completions API, same interface as OllamaClient.

import os
from typing import Optional

import openai
from openai import OpenAI

from careerrag.errors import ProviderTimeout, ProviderUnavailable

from ..types import ModelParams


class OpenAIClient:
    def __init__(self, model: str = "gpt-4o-mini", api_key: Optional[str] = None):
        self.model = model
        self.client = OpenAI(api_key=api_key or os.getenv("OPENAI_API_KEY"))

    def complete(self, prompt: str, timeout_ms: int, params: Optional[ModelParams] = None) -> str:
        params = params or ModelParams()
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=params.temperature or 0.3,
                max_tokens=params.max_tokens or 1000,
                timeout=timeout_ms / 1000,
            )
        except openai.APITimeoutError as e:
            raise ProviderTimeout(f"OpenAI did not answer within {timeout_ms} ms") from e
        except openai.OpenAIError as e:
            raise ProviderUnavailable(f"OpenAI request failed: {e}") from e
        return (resp.choices[0].message.content or "").strip()
