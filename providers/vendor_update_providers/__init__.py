"""Vendor-Update Providers package.

This package contains the provider registry and built-in update providers.
"""

from __future__ import annotations

from vendor_update_providers.manifest import ManifestUpdateProvider
from vendor_update_providers.mock import MockUpdateProvider, demo_catalog
from vendor_update_providers.registry import ProviderRegistry

BUILTIN_PROVIDERS = {
    "mock": MockUpdateProvider,
    "manifest": ManifestUpdateProvider,
}

__all__ = [
    "BUILTIN_PROVIDERS",
    "ManifestUpdateProvider",
    "MockUpdateProvider",
    "ProviderRegistry",
    "default_registry",
    "demo_catalog",
]


def default_registry(*, discover: bool = True) -> ProviderRegistry:
    """Build a registry holding the built-in providers.

    Built-ins are registered first; entry-point providers are added after
    them when ``discover`` is set and cannot take a built-in name.
    """
    registry = ProviderRegistry()
    for name, provider_class in BUILTIN_PROVIDERS.items():
        registry.register(name, provider_class)
    if discover:
        registry.discover_providers()
    return registry
