"""Failures of the hosted model and how they surface to API callers."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum

from aitodo.core.errors import APIError

logger = logging.getLogger(__name__)


class AIServiceError(Exception):
    """Base class for hosted-model failures."""


class ModelNotFoundError(AIServiceError):
    """The model identifier is unknown or no longer supported."""


class RateLimitError(AIServiceError):
    """Quota exhausted or too many requests."""


class AIAuthenticationError(AIServiceError):
    """Missing or rejected API credential."""


class AINetworkError(AIServiceError):
    """Connection failure or timeout talking to the provider."""


class InvalidModelOutputError(AIServiceError):
    """The reply did not match the declared output shape."""


class AIErrorKind(str, Enum):
    RATE_LIMIT = "rate_limit"
    AUTHENTICATION = "authentication"
    MODEL_UNAVAILABLE = "model_unavailable"
    NETWORK = "network"
    UNKNOWN = "unknown"


_TYPED_KINDS: list[tuple[type[Exception], AIErrorKind]] = [
    (RateLimitError, AIErrorKind.RATE_LIMIT),
    (AIAuthenticationError, AIErrorKind.AUTHENTICATION),
    (ModelNotFoundError, AIErrorKind.MODEL_UNAVAILABLE),
    (AINetworkError, AIErrorKind.NETWORK),
    (InvalidModelOutputError, AIErrorKind.UNKNOWN),
]

# Checked in order; the first matching keyword wins
_KEYWORD_KINDS: list[tuple[AIErrorKind, tuple[str, ...]]] = [
    (AIErrorKind.RATE_LIMIT, ("quota", "rate limit", "429", "resource exhausted")),
    (AIErrorKind.AUTHENTICATION, ("api key", "api_key", "authentication")),
    (AIErrorKind.MODEL_UNAVAILABLE, ("model", "not found", "404")),
    (AIErrorKind.NETWORK, ("network", "timeout", "fetch")),
]

MESSAGES = {
    AIErrorKind.RATE_LIMIT: "The AI service usage limit was exceeded. Please try again shortly.",
    AIErrorKind.AUTHENTICATION: "AI service authentication failed. Check the server configuration.",
    AIErrorKind.MODEL_UNAVAILABLE: "The AI model is unavailable. Check the server configuration.",
    AIErrorKind.NETWORK: "Could not reach the AI service. Check the network connection.",
}


def classify_message(message: str) -> AIErrorKind:
    lowered = message.lower()
    for kind, keywords in _KEYWORD_KINDS:
        if any(k in lowered for k in keywords):
            return kind
    return AIErrorKind.UNKNOWN


def classify_error(exc: BaseException) -> AIErrorKind:
    for exc_type, kind in _TYPED_KINDS:
        if isinstance(exc, exc_type):
            return kind
    return classify_message(str(exc))


def to_api_error(
    exc: BaseException,
    fallback_message: str,
    models: Sequence[str] = (),
) -> APIError:
    """Map a hosted-model failure to the HTTP error returned to the client."""
    kind = classify_error(exc)
    message = str(exc) or type(exc).__name__
    if kind is AIErrorKind.RATE_LIMIT:
        return APIError(429, MESSAGES[kind])
    if kind is AIErrorKind.AUTHENTICATION:
        logger.error("AI authentication failed: %s", message)
        return APIError(500, MESSAGES[kind])
    if kind is AIErrorKind.MODEL_UNAVAILABLE:
        logger.error("AI model unavailable (tried %s): %s", ", ".join(models), message)
        details = f"Tried models: {', '.join(models)}. Error: {message}" if models else message
        return APIError(500, MESSAGES[kind], details)
    if kind is AIErrorKind.NETWORK:
        return APIError(500, MESSAGES[kind])
    logger.error("Unclassified AI failure", exc_info=exc)
    return APIError(500, fallback_message, message)
