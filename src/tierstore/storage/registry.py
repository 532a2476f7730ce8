# src/tierstore/storage/registry.py
"""
Priority-ordered registry of storage providers.

The registry owns the fixed ordering of tiers (fastest/cheapest first) and
answers the two questions the orchestrator needs: "every provider, in order"
and "every provider ranked strictly before this one". The ordering is data
(an injected sequence of ``(tier, rank)`` pairs) fixed at construction time;
it is never reconfigured at runtime.

Lookups are linear scans over the registered providers, which is
O(number of tiers) and intended for a handful of tiers.

Example::

    registry = ProviderRegistry(
        [database_provider, cache_provider, file_provider],
        priorities=[("cache", 0), ("file", 1), ("database", 2)],
    )
    registry.tiers()                              # ('cache', 'file', 'database')
    registry.providers_before(database_provider)  # (cache_provider, file_provider)
"""

import logging
from typing import Dict, Iterable, Iterator, Sequence, Tuple

from ..exceptions import ConfigError
from ..models import DEFAULT_TIER_PRIORITIES
from .base_provider import BaseStorageProvider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Holds all storage providers in a fixed priority order.

    Args:
        providers: The providers to register, in any order.
        priorities: Ordered ``(tier, rank)`` pairs; lower rank means faster tier.

    Raises:
        ConfigError: If no providers are given, a tier is registered twice,
            a provider's tier has no rank, or the priority table repeats a tier.
    """

    def __init__(
        self,
        providers: Iterable[BaseStorageProvider],
        priorities: Sequence[Tuple[str, int]] = DEFAULT_TIER_PRIORITIES,
    ) -> None:
        provider_list = list(providers)
        if not provider_list:
            raise ConfigError("At least one storage provider must be registered.")

        self._ranks = self._build_rank_table(priorities)

        seen: Dict[str, BaseStorageProvider] = {}
        for provider in provider_list:
            tier = provider.tier
            if not tier:
                raise ConfigError(f"Provider {type(provider).__name__} does not declare a tier identity.")
            if tier in seen:
                raise ConfigError(f"Tier '{tier}' is declared by more than one provider.")
            if tier not in self._ranks:
                raise ConfigError(f"Tier '{tier}' has no rank in the priority table. "
                                  f"Ranked tiers: {sorted(self._ranks)}")
            seen[tier] = provider

        self._ordered: Tuple[BaseStorageProvider, ...] = tuple(
            sorted(provider_list, key=lambda p: self._ranks[p.tier])
        )
        logger.info(f"ProviderRegistry initialized with tier order: {list(self.tiers())}")

    @staticmethod
    def _build_rank_table(priorities: Sequence[Tuple[str, int]]) -> Dict[str, int]:
        ranks: Dict[str, int] = {}
        for tier, rank in priorities:
            if tier in ranks:
                raise ConfigError(f"Tier '{tier}' appears more than once in the priority table.")
            ranks[str(tier)] = int(rank)
        return ranks

    def all_in_order(self) -> Tuple[BaseStorageProvider, ...]:
        """Return every provider, fastest first."""
        return self._ordered

    def providers_before(self, provider: BaseStorageProvider) -> Tuple[BaseStorageProvider, ...]:
        """
        Return the providers ranked strictly ahead of ``provider``.

        Raises:
            ConfigError: If ``provider`` is not registered.
        """
        for index, candidate in enumerate(self._ordered):
            if candidate is provider:
                return self._ordered[:index]
        raise ConfigError(f"Provider {provider!r} is not registered.")

    def get_provider(self, tier: str) -> BaseStorageProvider:
        """
        Return the provider registered for ``tier``.

        Raises:
            ConfigError: If no provider serves that tier.
        """
        for candidate in self._ordered:
            if candidate.tier == tier:
                return candidate
        raise ConfigError(f"No storage provider registered for tier '{tier}'.")

    def rank_of(self, tier: str) -> int:
        """Return the configured rank of ``tier``."""
        try:
            return self._ranks[tier]
        except KeyError:
            raise ConfigError(f"Tier '{tier}' has no rank in the priority table.")

    def tiers(self) -> Tuple[str, ...]:
        """Return the registered tier identities, fastest first."""
        return tuple(p.tier for p in self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def __iter__(self) -> Iterator[BaseStorageProvider]:
        return iter(self._ordered)
