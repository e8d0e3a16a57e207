"""ProviderRouter — picks the best generation provider for a task category."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from backend.services.performance.metrics_store import MetricsStore
from backend.services.performance.types import DEFAULT_PROVIDERS

logger = logging.getLogger("genstudio.performance.provider_router")


class ProviderRouter:
    """Ranks a category's static candidates by observed success rate.

    Selection logic:
    1. Take the static candidate list for the category (best first)
    2. Keep candidates with at least one recorded call
    3. Stable-sort them by success rate, highest first, so ties keep the
       static order
    4. Return the top one, or the first static candidate when none has data

    Never raises: an unknown category resolves to ``default_provider``.

    Usage::

        router = ProviderRouter(store)
        router.select_provider("music")   # "suno-v3.5" until data says otherwise
    """

    def __init__(
        self,
        store: MetricsStore,
        providers: Optional[Dict[str, Sequence[str]]] = None,
        default_provider: str = "suno-v3.5",
    ):
        self._store = store
        source = providers if providers is not None else DEFAULT_PROVIDERS
        self._candidates: Dict[str, List[str]] = {
            category: list(names) for category, names in source.items()
        }
        self._default = default_provider

    # ── public ────────────────────────────────────────────────────────────────

    def categories(self) -> List[str]:
        return list(self._candidates)

    def candidates(self, task_category: str) -> List[str]:
        return list(self._candidates.get(task_category, []))

    def select_provider(self, task_category: str) -> str:
        ranked = self._ranked_with_data(task_category)
        if ranked:
            return ranked[0]
        candidates = self._candidates.get(task_category)
        if candidates:
            return candidates[0]
        logger.debug("Unknown task category %r, using default provider %r",
                     task_category, self._default)
        return self._default

    def rank_providers(self, task_category: str) -> List[str]:
        """All candidates: ranked ones with data, then untried in static order."""
        ranked = self._ranked_with_data(task_category)
        untried = [c for c in self.candidates(task_category) if c not in ranked]
        return ranked + untried

    # ── internal ──────────────────────────────────────────────────────────────

    def _ranked_with_data(self, task_category: str) -> List[str]:
        observed = self._store.provider_metrics()
        with_data = [
            c for c in self._candidates.get(task_category, [])
            if c in observed and observed[c].total_calls > 0
        ]
        return sorted(with_data, key=lambda c: -observed[c].success_rate)
