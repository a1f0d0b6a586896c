"""Pluggable matching-oracle provider layer.

Usage:
  from app.services.oracle_providers import get_provider
  provider = get_provider(config)
  text = provider.compare(parts, MATCH_RESPONSE_SCHEMA, timeout=60)

Providers:
    - EchoProvider: offline, always answers with zero matches (local dev)
    - OpenAIProvider: OpenAI Chat Completions, json_schema response format
    - GeminiProvider: google-generativeai, response_schema

Add new provider by implementing BaseOracleProvider and registering it in PROVIDERS.
Providers only translate parts and return the oracle's raw text; error
wrapping, logging and timing belong to OracleClient.
"""
from __future__ import annotations
from typing import List, Dict, Any, Optional, Sequence
import abc
import copy

import openai

from app.domain.errors import OracleUnavailable
from app.domain.match_schema import EMPTY_ORACLE_TEXT
from app.models.oracle import OracleConfig
from app.services.image_normalizer import ImagePart
from app.services.prompt_builder import PromptPart


class BaseOracleProvider(abc.ABC):
    name: str
    requires_credential: bool = True
    model: Optional[str] = None

    @abc.abstractmethod
    def compare(self, parts: Sequence[PromptPart], response_schema: Dict[str, Any], timeout: float) -> str:
        ...


class EchoProvider(BaseOracleProvider):
    name = "echo"
    requires_credential = False

    def __init__(self, config: Optional[OracleConfig] = None):
        self.model = self.name

    def compare(self, parts: Sequence[PromptPart], response_schema: Dict[str, Any], timeout: float) -> str:
        return EMPTY_ORACLE_TEXT


class OpenAIProvider(BaseOracleProvider):
    name = "openai"

    def __init__(self, config: OracleConfig):
        if not config.api_key:
            raise OracleUnavailable("OPENAI_API_KEY missing")
        self.model = config.model_name
        self._client = openai.OpenAI(api_key=config.api_key, max_retries=0)

    @staticmethod
    def _content(parts: Sequence[PromptPart]) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = []
        for p in parts:
            if isinstance(p, ImagePart):
                content.append({"type": "image_url", "image_url": {"url": p.to_data_url()}})
            else:
                content.append({"type": "text", "text": p.text})
        return content

    def compare(self, parts: Sequence[PromptPart], response_schema: Dict[str, Any], timeout: float) -> str:
        resp = self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": self._content(parts)}],
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "match_results", "schema": response_schema, "strict": True},
            },
            timeout=timeout,
        )
        return resp.choices[0].message.content or ""


def _gemini_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """JSON Schema subset -> Gemini schema (upper-case types, no additionalProperties)."""
    out: Dict[str, Any] = {}
    for k, v in schema.items():
        if k == "additionalProperties":
            continue
        if k == "type" and isinstance(v, str):
            out[k] = v.upper()
        elif k == "properties" and isinstance(v, dict):
            out[k] = {name: _gemini_schema(sub) for name, sub in v.items()}
        elif k == "items" and isinstance(v, dict):
            out[k] = _gemini_schema(v)
        else:
            out[k] = copy.deepcopy(v)
    return out


class GeminiProvider(BaseOracleProvider):
    name = "gemini"

    def __init__(self, config: OracleConfig):
        if not config.api_key:
            raise OracleUnavailable("GOOGLE_API_KEY missing")
        import google.generativeai as genai  # heavy import, only when selected

        genai.configure(api_key=config.api_key)
        self._genai = genai
        self.model = config.model_name
        self._model = genai.GenerativeModel(config.model_name)

    @staticmethod
    def _contents(parts: Sequence[PromptPart]) -> List[Any]:
        contents: List[Any] = []
        for p in parts:
            if isinstance(p, ImagePart):
                contents.append({"mime_type": p.media_type, "data": p.to_bytes()})
            else:
                contents.append(p.text)
        return contents

    def compare(self, parts: Sequence[PromptPart], response_schema: Dict[str, Any], timeout: float) -> str:
        generation_config = self._genai.GenerationConfig(
            response_mime_type="application/json",
            response_schema=_gemini_schema(response_schema),
        )
        resp = self._model.generate_content(
            self._contents(parts),
            generation_config=generation_config,
            request_options={"timeout": timeout},
        )
        return resp.text


PROVIDERS = {
    EchoProvider.name: EchoProvider,
    OpenAIProvider.name: OpenAIProvider,
    GeminiProvider.name: GeminiProvider,
}


def get_provider(config: OracleConfig) -> BaseOracleProvider:
    cls = PROVIDERS.get(config.provider)
    if cls is None:
        raise OracleUnavailable(f"unknown oracle provider: {config.provider!r}")
    return cls(config)
