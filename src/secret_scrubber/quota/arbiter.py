"""Multi-scope quota admission for scan requests."""

import logging
from typing import Any, Dict, Mapping, Optional

import redis

from ..config.constants import DEFAULT_QUOTA_KEY_PREFIX, QuotaScope
from ..config.settings import Settings, get_settings
from ..core.exceptions import QuotaUnavailableError
from ..core.interfaces import AdmissionDecision, CounterStore, ScopeLimit
from .store import RedisCounterStore

logger = logging.getLogger(__name__)

# Store faults that degrade to fail-open instead of blocking scans
STORE_ERRORS = (redis.RedisError, OSError, QuotaUnavailableError)

GLOBAL_KEY = "global"

_SCOPE_LABELS = {
    QuotaScope.GLOBAL: "Global",
    QuotaScope.ACTOR: "User",
    QuotaScope.DESTINATION: "Channel",
}


class QuotaArbiter:
    """Admits requests against global, per-actor and per-destination budgets.

    Scopes are checked in that order and the first rejection wins, so the
    reported wait always belongs to the outermost exhausted scope. When the
    counter store is missing or failing, requests are admitted and the
    degradation is logged.
    """

    def __init__(
        self,
        store: Optional[CounterStore],
        limits: Mapping[QuotaScope, ScopeLimit],
        key_prefix: str = DEFAULT_QUOTA_KEY_PREFIX,
    ) -> None:
        """
        Initialize arbiter.

        Args:
            store: Shared counter store; None leaves the arbiter uninitialized
            limits: Budget of every scope
            key_prefix: Prefix of every counter key
        """
        missing = set(QuotaScope) - set(limits)
        if missing:
            raise ValueError(f"Missing quota limits for: {sorted(s.value for s in missing)}")
        self.store = store
        self.limits: Dict[QuotaScope, ScopeLimit] = dict(limits)
        self.key_prefix = key_prefix

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "QuotaArbiter":
        """Build a Redis-backed arbiter from settings."""
        settings = settings or get_settings()
        limits = {
            scope: ScopeLimit(points=points, duration_seconds=window)
            for scope, (points, window) in settings.quota_limits.items()
        }
        store: Optional[CounterStore] = None
        if settings.redis_url:
            store = RedisCounterStore(
                settings.redis_url, timeout=settings.redis_timeout_seconds
            )
        else:
            logger.warning("No Redis URL configured, quota checks will fail open")
        return cls(store, limits, key_prefix=settings.quota_key_prefix)

    def _key(self, scope: QuotaScope, identifier: str) -> str:
        return f"{self.key_prefix}:{scope.value}:{identifier}"

    def _identifiers(self, actor_id: str, destination_id: str) -> Dict[QuotaScope, str]:
        return {
            QuotaScope.GLOBAL: GLOBAL_KEY,
            QuotaScope.ACTOR: actor_id,
            QuotaScope.DESTINATION: destination_id,
        }

    def admit(self, actor_id: str, destination_id: str) -> AdmissionDecision:
        """
        Consume one point from each scope, stopping at the first rejection.

        Args:
            actor_id: Identifier of the message author
            destination_id: Identifier of the channel the message went to

        Returns:
            AdmissionDecision; rejected decisions carry the rejecting scope
            and seconds until its window resets
        """
        if self.store is None:
            logger.warning("Rate limiters not initialized, allowing request")
            return AdmissionDecision(allowed=True, degraded=True)

        try:
            for scope, identifier in self._identifiers(actor_id, destination_id).items():
                limit = self.limits[scope]
                consumed, ms_before_next = self.store.consume(
                    self._key(scope, identifier), 1, limit.duration_seconds
                )
                if consumed > limit.points:
                    retry_after = ms_before_next / 1000
                    return AdmissionDecision(
                        allowed=False,
                        scope=scope,
                        retry_after_seconds=retry_after,
                        reason=(
                            f"{_SCOPE_LABELS[scope]} rate limit exceeded. "
                            f"Retry in {round(retry_after)} seconds"
                        ),
                    )
        except STORE_ERRORS as e:
            logger.warning("Quota store unavailable, allowing request: %s", e)
            return AdmissionDecision(allowed=True, degraded=True)

        return AdmissionDecision(allowed=True)

    def status(
        self, actor_id: Optional[str] = None, destination_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Consumed and remaining points for the global and requested scopes."""
        requested = {QuotaScope.GLOBAL: GLOBAL_KEY}
        if actor_id is not None:
            requested[QuotaScope.ACTOR] = actor_id
        if destination_id is not None:
            requested[QuotaScope.DESTINATION] = destination_id

        status: Dict[str, Any] = {}
        if self.store is None:
            return status

        try:
            for scope, identifier in requested.items():
                entry = self.store.get(self._key(scope, identifier))
                consumed = entry[0] if entry else 0
                status[scope.value] = {
                    "consumed": consumed,
                    "remaining": max(self.limits[scope].points - consumed, 0),
                }
        except STORE_ERRORS as e:
            logger.error("Error getting rate limit status: %s", e)
        return status

    def reset(self, scope: QuotaScope, identifier: str = GLOBAL_KEY) -> None:
        """Drop the counter of one scope identifier."""
        if self.store is None:
            return
        try:
            self.store.delete(self._key(QuotaScope(scope), identifier))
        except STORE_ERRORS as e:
            logger.error("Error resetting rate limit: %s", e)

    def close(self) -> None:
        close = getattr(self.store, "close", None)
        if close is not None:
            close()
