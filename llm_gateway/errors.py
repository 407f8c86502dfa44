"""Gateway error taxonomy."""
from __future__ import annotations

from typing import Dict


class LlmGatewayError(RuntimeError):  # Base gateway error
    pass


class ProviderError(LlmGatewayError):
    """A single provider call failed."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.reason = message


class ProviderTimeout(ProviderError):
    def __init__(self, provider: str, timeout_s: float) -> None:
        super().__init__(provider, f"timed out after {timeout_s:g}s")
        self.timeout_s = timeout_s


class ProviderRejected(ProviderError):
    """Transport failure, error status or malformed payload."""


class ProviderBusy(ProviderError):
    """Every worker for the provider was occupied; the call never started."""

    def __init__(self, provider: str, timeout_s: float) -> None:
        super().__init__(provider, f"no free worker within {timeout_s:g}s")
        self.timeout_s = timeout_s


class AllProvidersUnavailable(LlmGatewayError):
    """Every provider was skipped or failed for one generation call."""

    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = dict(errors)
        if errors:
            detail = "; ".join(f"{name}: {reason}" for name, reason in errors.items())
        else:
            detail = "no providers configured"
        super().__init__(f"All AI providers unavailable ({detail})")


__all__ = [
    "LlmGatewayError",
    "ProviderError",
    "ProviderTimeout",
    "ProviderRejected",
    "ProviderBusy",
    "AllProvidersUnavailable",
]
