from __future__ import annotations  # Provider adapters for the AI gateway

import logging
import os
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

import httpx

from config.providers import ProviderRoute

from .errors import ProviderRejected


logger = logging.getLogger(__name__)  # Module logger setup

Message = Dict[str, str]


class ProviderAdapter(Protocol):  # Uniform call surface per backend
    def call(self, messages: Sequence[Message], max_tokens: int, temperature: float) -> str: ...


class HttpClient(Protocol):  # Minimal HTTP client protocol
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> "HttpResponse": ...


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class HttpChatProvider:
    """OpenAI-compatible ``/chat/completions`` adapter."""

    def __init__(self, route: ProviderRoute, *, client: Optional[HttpClient] = None, timeout_s: float = 30.0) -> None:
        self.route = route
        self.name = route.name
        self._client = client
        self._timeout_s = route.timeout_s or timeout_s

    def call(self, messages: Sequence[Message], max_tokens: int, temperature: float) -> str:
        payload: Dict[str, Any] = {
            "model": self.route.model,
            "messages": normalize_messages(messages),
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        headers = {"Content-Type": "application/json"}
        if self.route.api_key_env:
            api_key = os.getenv(self.route.api_key_env)
            if not api_key:
                raise ProviderRejected(self.name, f"missing credentials in {self.route.api_key_env}")
            headers["Authorization"] = f"Bearer {api_key}"
        headers.update(self.route.extra_headers)
        url = f"{self.route.base_url}{self.route.endpoint}"
        logger.info("Provider request send provider=%s model=%s preview=%s", self.name, self.route.model, preview(messages))
        try:
            response, close_cb = _post(url, payload, headers, self._timeout_s, self._client)
        except httpx.HTTPError as exc:
            logger.error("Provider transport failure provider=%s: %s", self.name, exc)
            raise ProviderRejected(self.name, f"transport failed: {exc}") from exc
        try:
            if response.status_code >= 400:
                logger.error("Provider error status provider=%s status=%s", self.name, response.status_code)
                raise ProviderRejected(self.name, f"returned status {response.status_code}")
            try:
                data = response.json()
            except ValueError as exc:
                logger.error("Invalid JSON payload from provider=%s: %s", self.name, exc)
                raise ProviderRejected(self.name, "payload was not JSON") from exc
            return extract_content(self.name, data)
        finally:
            _close_safely(close_cb)


def _post(url: str, payload: Dict[str, Any], headers: Dict[str, str], timeout: float, client: Optional[HttpClient]) -> Tuple[HttpResponse, Optional[Callable[[], None]]]:  # Dispatch HTTP request
    if client is not None:
        return client.post(url, json=payload, headers=headers, timeout=timeout), None
    http_client = httpx.Client(timeout=timeout)
    try:
        response = http_client.post(url, json=payload, headers=headers)
    except httpx.HTTPError:
        http_client.close()
        raise
    return response, http_client.close


def _close_safely(close_cb: Optional[Callable[[], None]]) -> None:  # Close HTTP client callback when provided
    if close_cb is not None:
        close_cb()


def normalize_messages(messages: Sequence[Message]) -> List[Message]:  # Ensure message payload shape
    normalized: List[Message] = []
    for item in messages:
        if not isinstance(item, dict):
            raise TypeError("Each chat message must be a dict with role/content")
        role = str(item.get("role", "")).strip()
        content = str(item.get("content", ""))
        if not role:
            raise ValueError("Chat message missing role")
        normalized.append({"role": role, "content": content})
    return normalized


def preview(messages: Sequence[Message], limit: int = 120) -> str:  # Build preview string for logging
    for message in reversed(list(messages)):
        text = str(message.get("content", "")).strip()
        if text:
            line = text.splitlines()[0]
            return line if len(line) <= limit else line[: limit - 3] + "..."
    return ""


def extract_content(provider: str, data: Any) -> str:  # Extract message content from provider response
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content
        if isinstance(data.get("content"), str):
            return data["content"]
    raise ProviderRejected(provider, "response missing content")


__all__ = [
    "HttpChatProvider",
    "HttpClient",
    "HttpResponse",
    "Message",
    "ProviderAdapter",
    "extract_content",
    "normalize_messages",
    "preview",
]
