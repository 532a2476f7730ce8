# src/tierstore/orchestrator.py
"""
Tiered storage orchestration.

The orchestrator hides tier topology from callers behind four operations:

- ``get_by_id``: check tiers fastest first; on a hit, copy the record into
  every faster tier that missed (refresh-on-read, best effort).
- ``save``: mint an id and write to every tier in order; if a tier fails,
  delete the copies already written to faster tiers (compensating rollback)
  and report the save as failed.
- ``update``: locate the record, replace its value and timestamp, and
  write it to every tier in order; stop at the first failing tier. There is
  no rollback on update, since overwritten values cannot be restored.
- ``delete``: attempt every tier and report the aggregate.

Every provider call goes through :meth:`TieredStorageOrchestrator._call`,
which applies the optional per-call deadline and converts provider
exceptions and timeouts into failure signals. Public operations therefore
resolve to an :class:`~tierstore.models.OperationResult` and never let a
tier's exception escape.

Operations run strictly sequentially, one tier at a time, in registry
order. No locking is performed across tiers: concurrent operations on the
same id may interleave and tiers may transiently disagree.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .models import OperationResult, Record, SearchResult, utc_now
from .storage.base_provider import BaseStorageProvider
from .storage.registry import ProviderRegistry

logger = logging.getLogger(__name__)


def _new_record_id() -> str:
    return str(uuid.uuid4())


@dataclass
class ProviderCall:
    """
    Outcome of one guarded provider call.

    ``completed`` is False when the provider raised or timed out; the state
    of that tier is then unknown. ``value`` holds the provider's return value.
    """
    completed: bool
    value: Any = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.completed and self.value is True


class TieredStorageOrchestrator:
    """
    Read-with-refresh, write-all-or-compensate and update-all over a provider registry.

    Args:
        registry: The priority-ordered providers.
        provider_timeout_seconds: Deadline applied to each provider call
            (None = wait indefinitely). Expiry counts as a provider failure.
        id_factory: Mints identifiers for new records (UUID4 strings by default).
        clock: Returns the write timestamp (current UTC time by default).
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        provider_timeout_seconds: Optional[float] = None,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._registry = registry
        self._timeout = provider_timeout_seconds
        self._id_factory = id_factory or _new_record_id
        self._clock = clock or utc_now

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def get_by_id(self, record_id: str) -> OperationResult[Record]:
        """
        Return the record from the fastest tier that holds it.

        Faster tiers that missed are refreshed with the found record; a
        refresh failure is logged and never turns the read into a failure.
        """
        if not self._valid_id(record_id):
            return OperationResult.invalid("Record ID cannot be null or empty.")

        search = await self._search(record_id)
        if search is None:
            logger.debug(f"Record '{record_id}' not found in any tier.")
            return OperationResult.not_found_result(record_id)

        if not await self._refresh(search):
            logger.warning(f"Refresh of faster tiers failed for record '{record_id}' (found in '{search.found_in}').")

        return OperationResult.success(search.record)

    async def save(self, value: str) -> OperationResult[str]:
        """
        Create a record holding ``value`` in every tier and return its new id.

        On a failing tier, copies already written to faster tiers are deleted
        and the save is reported as failed.
        """
        if not isinstance(value, str) or value == "":
            return OperationResult.invalid("Value cannot be null or empty.")

        record = Record(id=self._id_factory(), value=value, created_at=self._clock())
        written: List[BaseStorageProvider] = []
        tier_results: Dict[str, bool] = {}

        for provider in self._registry.all_in_order():
            call = await self._call(provider, "save", lambda p=provider: p.save(record))
            tier_results[provider.tier] = call.succeeded
            if call.succeeded:
                written.append(provider)
                continue

            reason = call.error or f"tier '{provider.tier}' reported the write as unsuccessful"
            logger.error(f"Saving record '{record.id}' failed at tier '{provider.tier}': {reason}. Rolling back.")
            to_compensate = list(written)
            if not call.completed:
                # The failed write may have landed before the error surfaced.
                to_compensate.append(provider)
            failed_rollbacks = await self._rollback(record.id, to_compensate)
            message = f"Save failed at tier '{provider.tier}': {reason}."
            if failed_rollbacks:
                message += f" Rollback incomplete for tiers: {failed_rollbacks}."
            return OperationResult.failure(message, tier_results)

        logger.info(f"Record '{record.id}' saved to tiers {list(tier_results)}.")
        return OperationResult.success(record.id, tier_results)

    async def update(self, record_id: str, value: str) -> OperationResult[str]:
        """
        Replace the value of an existing record in every tier.

        A tier that does not hold a copy is re-populated with ``save``. The
        update stops at the first tier that fails; tiers already updated keep
        the new value.
        """
        if not self._valid_id(record_id):
            return OperationResult.invalid("Record ID cannot be null or empty.")
        if not isinstance(value, str) or value == "":
            return OperationResult.invalid("Value cannot be null or empty.")

        search = await self._search(record_id)
        if search is None:
            logger.warning(f"Update of record '{record_id}' failed: not found in any tier.")
            return OperationResult.not_found_result(record_id)

        search.record.touch(value, self._clock())
        search.found_in = None
        record = search.record
        tier_results: Dict[str, bool] = {}

        for provider in self._propagation_targets(search):
            call = await self._call(provider, "update", lambda p=provider: p.update(record))
            if call.completed and call.value is False:
                logger.debug(f"Tier '{provider.tier}' holds no copy of '{record_id}'; saving it instead.")
                call = await self._call(provider, "save", lambda p=provider: p.save(record))

            tier_results[provider.tier] = call.succeeded
            if not call.succeeded:
                reason = call.error or f"tier '{provider.tier}' reported the write as unsuccessful"
                logger.warning(f"Update of record '{record_id}' stopped at tier '{provider.tier}': {reason}.")
                return OperationResult.failure(f"Update failed at tier '{provider.tier}': {reason}.", tier_results)

        logger.info(f"Record '{record_id}' updated in tiers {list(tier_results)}.")
        return OperationResult.success(record.id, tier_results)

    async def delete(self, record_id: str) -> OperationResult[str]:
        """
        Delete a record from every tier.

        Every tier is attempted even when an earlier one fails; the operation
        succeeds only if every tier reports success. Per-tier outcomes are in
        ``tier_results``.
        """
        if not self._valid_id(record_id):
            return OperationResult.invalid("Record ID cannot be null or empty.")

        tier_results: Dict[str, bool] = {}
        for provider in self._registry.all_in_order():
            call = await self._call(provider, "delete", lambda p=provider: p.delete(record_id))
            tier_results[provider.tier] = call.succeeded
            if not call.succeeded:
                logger.warning(f"Deleting record '{record_id}' from tier '{provider.tier}' failed: {call.error}")

        failed = [tier for tier, ok in tier_results.items() if not ok]
        if failed:
            return OperationResult.failure(f"Delete failed in tiers: {failed}.", tier_results)
        return OperationResult.success(record_id, tier_results)

    def describe(self) -> Dict[str, Any]:
        """Return the tier order and per-provider statistics."""
        return {
            "tiers": list(self._registry.tiers()),
            "provider_timeout_seconds": self._timeout,
            "providers": {p.tier: p.stats() for p in self._registry.all_in_order()},
        }

    # ------------------------------------------------------------------
    # Internal algorithms
    # ------------------------------------------------------------------

    async def _search(self, record_id: str) -> Optional[SearchResult]:
        """Return the first hit in registry order, treating a failing tier as a miss."""
        for provider in self._registry.all_in_order():
            call = await self._call(provider, "get", lambda p=provider: p.get(record_id))
            if not call.completed:
                continue
            if call.value is not None:
                logger.debug(f"Record '{record_id}' found in tier '{provider.tier}'.")
                return SearchResult(record=call.value, found_in=provider.tier)
            logger.debug(f"Record '{record_id}' missed in tier '{provider.tier}'.")
        return None

    def _propagation_targets(self, search: SearchResult) -> Tuple[BaseStorageProvider, ...]:
        """Tiers that must receive ``search.record``: all of them, or those faster than the hit."""
        if search.found_in is None:
            return self._registry.all_in_order()
        return self._registry.providers_before(self._registry.get_provider(search.found_in))

    async def _refresh(self, search: SearchResult) -> bool:
        """Write the found record into every faster tier. Returns False if any write failed."""
        all_refreshed = True
        for provider in self._propagation_targets(search):
            call = await self._call(provider, "save", lambda p=provider: p.save(search.record))
            if not call.succeeded:
                all_refreshed = False
                logger.warning(f"Could not refresh tier '{provider.tier}' with record '{search.record.id}': {call.error}")
        return all_refreshed

    async def _rollback(self, record_id: str, providers: List[BaseStorageProvider]) -> List[str]:
        """Delete ``record_id`` from each provider; return tiers whose delete failed."""
        failed: List[str] = []
        for provider in providers:
            call = await self._call(provider, "delete", lambda p=provider: p.delete(record_id))
            if not call.succeeded:
                failed.append(provider.tier)
                logger.warning(f"Rollback delete of record '{record_id}' from tier '{provider.tier}' failed: {call.error}")
        return failed

    async def _call(
        self,
        provider: BaseStorageProvider,
        operation: str,
        invoke: Callable[[], Awaitable[Any]],
    ) -> ProviderCall:
        """Run one provider call under the deadline, converting errors into a failed ProviderCall."""
        try:
            if self._timeout is None:
                value = await invoke()
            else:
                value = await asyncio.wait_for(invoke(), timeout=self._timeout)
        except asyncio.TimeoutError:
            message = f"{operation} timed out after {self._timeout}s"
            logger.error(f"Tier '{provider.tier}': {message}.")
            return ProviderCall(completed=False, error=message)
        except Exception as e:
            logger.error(f"Tier '{provider.tier}' raised during {operation}: {e}", exc_info=True)
            return ProviderCall(completed=False, error=str(e))
        return ProviderCall(completed=True, value=value)

    @staticmethod
    def _valid_id(record_id: Optional[str]) -> bool:
        return isinstance(record_id, str) and bool(record_id.strip())
