from __future__ import annotations  # Re-export llm_gateway public API

from .breaker import CircuitBreakers, ProviderHealthRecord
from .cache import CacheEntry, ResponseCache, fingerprint
from .errors import (
    AllProvidersUnavailable,
    LlmGatewayError,
    ProviderBusy,
    ProviderError,
    ProviderRejected,
    ProviderTimeout,
)
from .gateway import AiGateway, GatewayState, GenerationResult, build_gateway, default_gateway
from .providers import HttpChatProvider, HttpClient, HttpResponse, ProviderAdapter

__all__ = [
    "AiGateway",
    "AllProvidersUnavailable",
    "CacheEntry",
    "CircuitBreakers",
    "GatewayState",
    "GenerationResult",
    "HttpChatProvider",
    "HttpClient",
    "HttpResponse",
    "LlmGatewayError",
    "ProviderAdapter",
    "ProviderBusy",
    "ProviderError",
    "ProviderHealthRecord",
    "ProviderRejected",
    "ProviderTimeout",
    "ResponseCache",
    "build_gateway",
    "default_gateway",
    "fingerprint",
]
