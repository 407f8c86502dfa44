from __future__ import annotations  # Failure-resilient multi-provider generation

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from config.providers import ProvidersConfig, load_providers
from config.registry import get_provider, has_provider
from config.settings import Settings, settings

from .breaker import Clock, CircuitBreakers
from .cache import ResponseCache, fingerprint
from .errors import AllProvidersUnavailable, ProviderBusy, ProviderError, ProviderRejected, ProviderTimeout
from .providers import HttpChatProvider, HttpClient, Message, ProviderAdapter, preview


logger = logging.getLogger(__name__)  # Module logger setup

DOMAIN_SYSTEM_PROMPTS: Dict[str, str] = {
    "star-evaluation": (
        "You are an experienced interview coach who scores answers with the STAR method "
        "(Situation, Task, Action, Result). Reply with the requested JSON only."
    ),
    "question-generation": (
        "You are a professional interviewer. Reply with exactly one realistic interview "
        "question and no commentary."
    ),
    "coaching-feedback": (
        "You are a supportive interview coach. Give specific, actionable and encouraging "
        "feedback in British English."
    ),
    "general": "You are a helpful, concise interview preparation assistant.",
}


@dataclass
class GenerationResult:
    content: str
    provider_used: str
    fallback_used: bool
    cached: bool = False
    response_time_ms: int = 0


class GatewayState:
    """Process-wide mutable gateway state: breakers plus cache."""

    def __init__(self, *, breakers: Optional[CircuitBreakers] = None, cache: Optional[ResponseCache] = None) -> None:
        self.breakers = breakers or CircuitBreakers()
        self.cache = cache or ResponseCache()

    @classmethod
    def from_settings(cls, cfg: Settings = settings, *, clock: Clock = time.time) -> "GatewayState":
        return cls(
            breakers=CircuitBreakers(
                threshold=cfg.CIRCUIT_FAILURE_THRESHOLD,
                recovery_s=cfg.CIRCUIT_RECOVERY_SECONDS,
                clock=clock,
            ),
            cache=ResponseCache(
                ttl_s=cfg.CACHE_TTL_SECONDS,
                max_entries=cfg.CACHE_MAX_ENTRIES,
                clock=clock,
            ),
        )


class AiGateway:
    """Routes a generation request across providers in priority order."""

    def __init__(
        self,
        providers: Mapping[str, ProviderAdapter],
        *,
        priority: Optional[Sequence[str]] = None,
        languages: Optional[Mapping[str, Iterable[str]]] = None,
        domain_prompt_providers: Iterable[str] = (),
        state: Optional[GatewayState] = None,
        timeout_s: float = 30.0,
        max_workers: int = 8,
    ) -> None:
        self._providers: Dict[str, ProviderAdapter] = dict(providers)
        self.priority: List[str] = list(priority) if priority else list(self._providers)
        unknown = [name for name in self.priority if name not in self._providers]
        if unknown:
            raise KeyError(f"No adapter for providers: {', '.join(unknown)}")
        self._languages = {name: {code.lower() for code in codes} for name, codes in (languages or {}).items()}
        self._domain_prompt_providers = set(domain_prompt_providers)
        self.state = state or GatewayState()
        self.timeout_s = timeout_s
        # one pool per provider so a stuck provider cannot starve the others
        self._executors: Dict[str, ThreadPoolExecutor] = {
            name: ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=f"ai-gateway-{name}")
            for name in self._providers
        }

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------
    def provider_order(self, language: Optional[str] = None) -> List[str]:
        if not language:
            return list(self.priority)
        code = language.lower()
        preferred = [name for name in self.priority if code in self._languages.get(name, set())]
        rest = [name for name in self.priority if name not in preferred]
        return preferred + rest

    def _messages_for(self, provider: str, messages: List[Message], domain: Optional[str]) -> List[Message]:
        if not domain or provider not in self._domain_prompt_providers:
            return messages
        system_prompt = DOMAIN_SYSTEM_PROMPTS.get(domain)
        if system_prompt is None:
            return messages
        others = [m for m in messages if m.get("role") != "system"]
        return [{"role": "system", "content": system_prompt}] + others

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    def generate(
        self,
        messages: Sequence[Message],
        max_tokens: int = 800,
        temperature: float = 0.7,
        domain: Optional[str] = None,
        language: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> GenerationResult:
        started = time.monotonic()
        request = [dict(m) for m in messages]
        key = fingerprint(request, language=language, domain=domain, max_tokens=max_tokens, temperature=temperature)
        hit = self.state.cache.get(key)
        if hit is not None:
            logger.info("Gateway cache hit provider=%s preview=%s", hit.provider, preview(request))
            return GenerationResult(
                content=hit.content,
                provider_used=hit.provider,
                fallback_used=False,
                cached=True,
                response_time_ms=_elapsed_ms(started),
            )

        errors: Dict[str, str] = {}
        limit = timeout or self.timeout_s
        for index, name in enumerate(self.provider_order(language)):
            if not self.state.breakers.is_available(name):
                logger.info("Circuit breaker open, skipping provider=%s", name)
                errors[name] = "circuit open"
                continue
            try:
                content = self._call(name, self._messages_for(name, request, domain), max_tokens, temperature, limit)
            except ProviderBusy as exc:
                logger.warning("Provider saturated, skipping provider=%s", name)
                errors[name] = exc.reason
                continue
            except ProviderError as exc:
                self.state.breakers.record_failure(name)
                errors[name] = exc.reason
                continue
            except Exception as exc:  # noqa: BLE001
                logger.exception("Unexpected provider failure provider=%s", name)
                self.state.breakers.record_failure(name)
                errors[name] = str(exc) or exc.__class__.__name__
                continue
            self.state.breakers.record_success(name)
            self.state.cache.put(key, content, name)
            fallback_used = index > 0
            logger.info("Gateway generation done provider=%s fallback=%s", name, fallback_used)
            return GenerationResult(
                content=content,
                provider_used=name,
                fallback_used=fallback_used,
                response_time_ms=_elapsed_ms(started),
            )

        failure = AllProvidersUnavailable(errors)
        logger.error("%s", failure)
        raise failure

    def _call(self, name: str, messages: List[Message], max_tokens: int, temperature: float, timeout_s: float) -> str:
        adapter = self._providers[name]
        future: Future[str] = self._executors[name].submit(adapter.call, messages, max_tokens, temperature)
        try:
            content = future.result(timeout=timeout_s)
        except FuturesTimeout as exc:
            if future.cancel():
                raise ProviderBusy(name, timeout_s) from exc
            logger.warning("Provider timed out provider=%s timeout=%.1fs", name, timeout_s)
            raise ProviderTimeout(name, timeout_s) from exc
        if not isinstance(content, str) or not content.strip():
            raise ProviderRejected(name, "empty completion")
        return content

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------
    def health(self) -> Dict[str, Any]:
        return {
            "providers": self.state.breakers.snapshot(self.priority),
            "cache": self.state.cache.stats(),
        }

    def reset_circuit_breakers(self) -> None:
        self.state.breakers.reset()

    def close(self) -> None:
        for executor in self._executors.values():
            executor.shutdown(wait=False)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def build_gateway(
    config: ProvidersConfig,
    *,
    cfg: Settings = settings,
    state: Optional[GatewayState] = None,
    client: Optional[HttpClient] = None,
) -> AiGateway:
    """Build a gateway from provider routes; registry bindings win over HTTP adapters."""

    adapters: Dict[str, ProviderAdapter] = {}
    for name in config.priority:
        if has_provider(name):
            adapters[name] = get_provider(name)
        else:
            adapters[name] = HttpChatProvider(config.routes[name], client=client, timeout_s=cfg.PROVIDER_TIMEOUT_S)
    return AiGateway(
        adapters,
        priority=config.priority,
        languages={name: route.languages for name, route in config.routes.items()},
        domain_prompt_providers=[name for name, route in config.routes.items() if route.domain_prompts],
        state=state or GatewayState.from_settings(cfg),
        timeout_s=cfg.PROVIDER_TIMEOUT_S,
        max_workers=cfg.GATEWAY_MAX_WORKERS,
    )


_gateway: Optional[AiGateway] = None
_gateway_guard = threading.Lock()


def default_gateway() -> AiGateway:
    """Lazily build the process-wide gateway from ``settings.PROVIDERS_CONFIG``."""

    global _gateway
    with _gateway_guard:
        if _gateway is None:
            path = Path(settings.PROVIDERS_CONFIG)
            config = load_providers(path) if path.exists() else ProvidersConfig()
            if not config.routes:
                logger.warning("No AI providers configured at %s; fallbacks only", path)
            _gateway = build_gateway(config)
        return _gateway


__all__ = [
    "AiGateway",
    "DOMAIN_SYSTEM_PROMPTS",
    "GatewayState",
    "GenerationResult",
    "build_gateway",
    "default_gateway",
]
