"""Provider registry.

Maps provider names to provider classes and builds configured instances.
Built-in providers are registered by name in code; third-party packages add
their own through the ``vendor_update.providers`` entry point group. A name
registered first keeps its class, so an entry point cannot replace a
built-in provider.
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Any

import structlog

from vendor_update.errors import ConfigError
from vendor_update.models import ProviderMetadata

if TYPE_CHECKING:
    from vendor_update.interfaces import UpdateProvider

logger = structlog.get_logger(__name__)

ENTRY_POINT_GROUP = "vendor_update.providers"

OPTION_KINDS = (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)


def accepted_options(provider_class: type[UpdateProvider]) -> list[str]:
    """Return the option names a provider constructor accepts."""
    parameters = inspect.signature(provider_class).parameters.values()
    return [p.name for p in parameters if p.kind in OPTION_KINDS]


class ProviderRegistry:
    """Provider classes keyed by the name used in configuration."""

    def __init__(self) -> None:
        self._providers: dict[str, type[UpdateProvider]] = {}

    def register(self, name: str, provider_class: type[UpdateProvider]) -> bool:
        """Register a provider class under a name.

        Returns:
            True if the class was added, False if the name was already taken.
        """
        existing = self._providers.get(name)
        if existing is not None:
            if existing is provider_class:
                logger.debug("provider_already_registered", provider=name)
            else:
                logger.warning(
                    "provider_name_conflict",
                    provider=name,
                    registered=existing.__qualname__,
                    rejected=provider_class.__qualname__,
                )
            return False

        self._providers[name] = provider_class
        logger.debug("provider_registered", provider=name, cls=provider_class.__qualname__)
        return True

    def unregister(self, name: str) -> bool:
        """Remove a provider; False if the name was not registered."""
        if self._providers.pop(name, None) is None:
            return False
        logger.debug("provider_unregistered", provider=name)
        return True

    def list_names(self) -> list[str]:
        """List registered provider names in registration order."""
        return list(self._providers)

    def create(self, name: str, options: Mapping[str, Any] | None = None) -> UpdateProvider:
        """Build a provider from its configured options.

        Options are checked against the provider constructor before it is
        called, so a typo in the configuration file names the offending key.

        Args:
            name: Registered provider name.
            options: Keyword arguments for the provider constructor.

        Raises:
            ConfigError: If the name is unknown or the options do not match
                the constructor.
        """
        provider_class = self._providers.get(name)
        if provider_class is None:
            available = ", ".join(self._providers) or "none"
            raise ConfigError(f"Unknown provider '{name}'. Available: {available}")

        options = dict(options or {})
        try:
            inspect.signature(provider_class).bind(**options)
        except TypeError as e:
            accepted = ", ".join(accepted_options(provider_class)) or "none"
            raise ConfigError(
                f"Invalid options for provider '{name}': {e} (accepted: {accepted})"
            ) from e

        logger.debug("provider_created", provider=name, options=sorted(options))
        return provider_class(**options)

    def describe(self) -> list[ProviderMetadata]:
        """Describe registered providers from their class docstrings."""
        described = []
        for name, provider_class in self._providers.items():
            doc = inspect.getdoc(provider_class) or ""
            summary = doc.splitlines()[0] if doc else ""
            described.append(ProviderMetadata(name=name, description=summary))
        return described

    def discover_providers(self) -> int:
        """Register providers published through entry points.

        Entry points that fail to load are logged and skipped.

        Returns:
            Number of providers added.
        """
        count = 0
        for ep in entry_points(group=ENTRY_POINT_GROUP):
            try:
                provider_class = ep.load()
            except Exception as e:
                logger.error("provider_discovery_failed", provider=ep.name, error=str(e))
                continue

            if self.register(ep.name, provider_class):
                count += 1
                logger.info("provider_discovered", provider=ep.name, module=ep.value)

        return count
