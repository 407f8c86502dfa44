"""In-memory provider adapter registry."""
from typing import Any, Dict

_REGISTRY: Dict[str, Any] = {}


def bind_provider(name: str, adapter: Any) -> None:
    """Bind a provider adapter to a route name, overriding the HTTP adapter."""
    _REGISTRY[name] = adapter


def get_provider(name: str) -> Any:
    """Retrieve a bound provider adapter.

    Raises:
        KeyError: If no adapter has been bound for ``name``.
    """

    if name not in _REGISTRY:
        raise KeyError(f"Provider not bound in registry: {name}")
    return _REGISTRY[name]


def has_provider(name: str) -> bool:
    return name in _REGISTRY


def clear_providers() -> None:
    _REGISTRY.clear()
