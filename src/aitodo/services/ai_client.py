"""AI client abstraction: protocol + provider-specific structured-output clients.

Each client sends a prompt together with the JSON schema of a pydantic model
and returns an instance of that model, so the reply shape is enforced by the
provider and checked again here.

Provider endpoints:
- Gemini: POST {base}/v1beta/models/{model}:generateContent  (base: https://generativelanguage.googleapis.com)
- OpenAI: POST {base}/v1/chat/completions                    (base: https://api.openai.com)
- Ollama: POST {base}/api/chat                               (base: http://localhost:11434), native API
"""

from __future__ import annotations

import json
from typing import Any, Protocol, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from aitodo.services.ai_errors import (
    AIAuthenticationError,
    AINetworkError,
    AIServiceError,
    InvalidModelOutputError,
    ModelNotFoundError,
    RateLimitError,
)

PROVIDER_BASE_URLS: dict[str, str] = {
    "gemini": "https://generativelanguage.googleapis.com",
    "openai": "https://api.openai.com",
    "ollama": "http://localhost:11434",
}

# Providers that work without a credential
KEYLESS_PROVIDERS = {"ollama"}

DEFAULT_TIMEOUT = 60.0

T = TypeVar("T", bound=BaseModel)


class AIClient(Protocol):
    """Minimal contract for a structured-generation client."""

    model: str

    async def generate_object(self, *, prompt: str, schema: type[T]) -> T: ...


def _error_message(resp: httpx.Response) -> str:
    """Pull the provider's error text out of a failed response."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if err:
            return str(err)
    return resp.text[:200] if resp.text else f"HTTP {resp.status_code}"


def _raise_for_status(resp: httpx.Response, model: str) -> None:
    if resp.status_code < 400:
        return
    message = _error_message(resp)
    lowered = message.lower()
    if resp.status_code == 429 or "quota" in lowered:
        raise RateLimitError(message)
    if resp.status_code in (401, 403) or "api key" in lowered:
        raise AIAuthenticationError(message)
    if resp.status_code == 404 or (
        resp.status_code == 400 and "not supported" in lowered
    ):
        raise ModelNotFoundError(f"Model '{model}' not found: {message}")
    raise AIServiceError(f"Provider returned {resp.status_code}: {message}")


async def _post(
    url: str,
    *,
    model: str,
    headers: dict[str, str],
    payload: dict[str, Any],
    timeout: float,
    transport: httpx.AsyncBaseTransport | None,
) -> dict[str, Any]:
    try:
        async with httpx.AsyncClient(transport=transport) as client:
            resp = await client.post(url, headers=headers, json=payload, timeout=timeout)
    except httpx.TimeoutException as e:
        raise AINetworkError(f"Request timed out: {e}") from e
    except httpx.TransportError as e:
        raise AINetworkError(f"Network error: {e}") from e
    _raise_for_status(resp, model)
    try:
        return resp.json()
    except ValueError as e:
        raise AIServiceError("Provider returned a non-JSON body") from e


def _parse_reply(text: str, schema: type[T]) -> T:
    try:
        return schema.model_validate_json(text)
    except ValidationError as e:
        raise InvalidModelOutputError(
            f"Reply does not match {schema.__name__}: {e.error_count()} error(s)"
        ) from e


def _resolve_refs(node: Any, defs: dict[str, Any]) -> Any:
    if isinstance(node, dict):
        if "$ref" in node:
            target = _resolve_refs(defs[node["$ref"].split("/")[-1]], defs)
            siblings = {k: v for k, v in node.items() if k != "$ref"}
            return {**target, **siblings}
        if len(node.get("allOf", ())) == 1:
            target = _resolve_refs(node["allOf"][0], defs)
            siblings = {k: v for k, v in node.items() if k != "allOf"}
            return {**target, **_resolve_refs(siblings, defs)}
        return {k: _resolve_refs(v, defs) for k, v in node.items() if k != "$defs"}
    if isinstance(node, list):
        return [_resolve_refs(v, defs) for v in node]
    return node


def _openapi_node(node: dict[str, Any]) -> dict[str, Any]:
    """Translate one JSON-schema node into Gemini's OpenAPI subset."""
    out: dict[str, Any] = {}
    variants = node.get("anyOf")
    if variants:
        non_null = [v for v in variants if v.get("type") != "null"]
        out = _openapi_node(non_null[0]) if non_null else {"type": "STRING"}
        if len(non_null) < len(variants):
            out["nullable"] = True
    elif "enum" in node:
        out = {"type": "STRING", "enum": [str(v) for v in node["enum"]]}
    else:
        kind = node.get("type", "string")
        out["type"] = kind.upper()
        if kind == "object":
            out["properties"] = {
                name: _openapi_node(prop)
                for name, prop in node.get("properties", {}).items()
            }
            if node.get("required"):
                out["required"] = list(node["required"])
        elif kind == "array":
            out["items"] = _openapi_node(node.get("items", {}))
    if node.get("description"):
        out["description"] = node["description"]
    return out


def gemini_response_schema(schema: type[BaseModel]) -> dict[str, Any]:
    """Gemini ``responseSchema`` for a pydantic model."""
    raw = schema.model_json_schema()
    return _openapi_node(_resolve_refs(raw, raw.get("$defs", {})))


class GeminiClient:
    """Uses the Gemini generateContent API with a JSON response schema."""

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def generate_object(self, *, prompt: str, schema: type[T]) -> T:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["x-goog-api-key"] = self._api_key
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": gemini_response_schema(schema),
            },
        }
        url = f"{self._base_url}/v1beta/models/{self.model}:generateContent"
        data = await _post(
            url,
            model=self.model,
            headers=headers,
            payload=payload,
            timeout=self._timeout,
            transport=self._transport,
        )
        return _parse_reply(self._extract_text(data), schema)

    @staticmethod
    def _extract_text(data: dict) -> str:
        candidates = data.get("candidates") or []
        parts = (candidates[0].get("content") or {}).get("parts") if candidates else None
        texts = [p["text"] for p in parts or [] if isinstance(p, dict) and "text" in p]
        if not texts:
            reason = candidates[0].get("finishReason") if candidates else None
            raise InvalidModelOutputError(f"No text content in Gemini response ({reason})")
        return "".join(texts)


class OllamaClient:
    """Uses Ollama native /api/chat with a JSON schema ``format``."""

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def generate_object(self, *, prompt: str, schema: type[T]) -> T:
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "format": schema.model_json_schema(),
            "stream": False,
            "options": {"temperature": 0.2},
        }
        url = f"{self._base_url}/api/chat"
        data = await _post(
            url,
            model=self.model,
            headers={"Content-Type": "application/json"},
            payload=payload,
            timeout=self._timeout,
            transport=self._transport,
        )
        content = (data.get("message") or {}).get("content")
        if not content:
            raise InvalidModelOutputError("No content in Ollama response")
        return _parse_reply(content, schema)


class OpenAIClient:
    """Calls any OpenAI-compatible /v1/chat/completions endpoint with a json_schema format."""

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def generate_object(self, *, prompt: str, schema: type[T]) -> T:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": schema.__name__,
                    "schema": schema.model_json_schema(),
                },
            },
            "temperature": 0.2,
        }
        url = f"{self._base_url}/v1/chat/completions"
        data = await _post(
            url,
            model=self.model,
            headers=headers,
            payload=payload,
            timeout=self._timeout,
            transport=self._transport,
        )
        return _parse_reply(self._extract_content(data), schema)

    @staticmethod
    def _extract_content(data: dict) -> str:
        """Pull text content from an OpenAI-style chat completion response.

        Raises InvalidModelOutputError when the payload is missing choices or
        content (e.g. content_filter finish_reason).
        """
        content = (
            (data.get("choices") or [{}])[0]
            .get("message", {})
            .get("content")
        )
        if content is None:
            raise InvalidModelOutputError("No content in AI response")
        return content if isinstance(content, str) else json.dumps(content)


def build_ai_client(
    *,
    provider: str,
    api_key: str | None,
    model: str,
    base_url: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> AIClient:
    """Factory: resolve provider settings into a concrete AIClient."""
    p = (provider or "gemini").lower()
    resolved_url = (
        base_url.rstrip("/") if base_url else PROVIDER_BASE_URLS.get(p, PROVIDER_BASE_URLS["gemini"])
    )
    if p == "ollama":
        return OllamaClient(api_key=api_key, model=model, base_url=resolved_url, timeout=timeout)
    if p == "openai":
        return OpenAIClient(api_key=api_key, model=model, base_url=resolved_url, timeout=timeout)
    return GeminiClient(api_key=api_key, model=model, base_url=resolved_url, timeout=timeout)
