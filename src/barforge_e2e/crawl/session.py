"""Per-run crawl bookkeeping: queue, visited/discovered sets and quota counters."""

from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List

from ..core.config import CrawlPolicy
from ..core.models import FailureRecord, PageMetrics, RouteResult
from .routes import base_path, has_query, route_category


@dataclass
class CrawlSession:
    """State for a single crawl run. Never shared between runs."""

    policy: CrawlPolicy
    queue: Deque[str] = field(default_factory=deque)
    visited: set[str] = field(default_factory=set)
    discovered: set[str] = field(default_factory=set)
    path_variant_count: Counter = field(default_factory=Counter)
    category_count: Counter = field(default_factory=Counter)
    metrics: PageMetrics = field(default_factory=PageMetrics)
    failures: List[FailureRecord] = field(default_factory=list)
    external_links: Dict[str, List[str]] = field(default_factory=dict)
    dropped: List[str] = field(default_factory=list)

    @classmethod
    def start(cls, policy: CrawlPolicy, seeds: Iterable[str] | None = None) -> "CrawlSession":
        session = cls(policy=policy)
        for route in seeds if seeds is not None else policy.seed_routes:
            session.enqueue(route)
        return session

    @property
    def exhausted(self) -> bool:
        return not self.queue or len(self.visited) >= self.policy.max_routes

    def enqueue(self, route: str) -> bool:
        if route in self.discovered:
            return False
        self.discovered.add(route)
        self.queue.append(route)
        return True

    def _accept(self, route: str) -> bool:
        base = base_path(route)
        category = route_category(route)
        is_variant = has_query(route)

        if is_variant and self.path_variant_count[base] >= self.policy.max_variants_per_path:
            return False
        if self.category_count[category] >= self.policy.category_cap(category):
            return False

        self.path_variant_count[base] += 1
        self.category_count[category] += 1
        return True

    def next_batch(self) -> List[str]:
        """Pop routes off the queue until a full batch is accepted.

        Routes over a variant or category cap are dropped, not requeued.
        """

        batch: List[str] = []
        while (
            len(batch) < self.policy.concurrency
            and self.queue
            and len(self.visited) < self.policy.max_routes
        ):
            route = self.queue.popleft()
            if route in self.visited:
                continue
            if not self._accept(route):
                self.dropped.append(route)
                continue
            self.visited.add(route)
            batch.append(route)
        return batch

    def absorb(self, results: Iterable[RouteResult]) -> None:
        for result in results:
            self.metrics.add(result.metrics)

            if result.external_links:
                self.external_links[result.route] = list(result.external_links)

            for href in result.internal_links:
                self.enqueue(href)

            if result.is_failure:
                self.failures.append(result.to_failure())
