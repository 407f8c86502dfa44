"""Configuration package for the coaching services."""
from .providers import ProviderRoute, ProvidersConfig, load_providers
from .registry import bind_provider, clear_providers, get_provider, has_provider
from .settings import Settings, settings

__all__ = [
    "ProviderRoute",
    "ProvidersConfig",
    "load_providers",
    "bind_provider",
    "clear_providers",
    "get_provider",
    "has_provider",
    "Settings",
    "settings",
]
