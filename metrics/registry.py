"""Metrics registry producing per-run snapshots for reporters"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, List, Optional, Tuple
from .models import MetricValueSource
from logging_config import get_logger


logger = get_logger(__name__)


ValueSourceProvider = Callable[[], Optional[MetricValueSource]]


@dataclass
class ContextSnapshot:
    """Value sources of one metrics context"""
    context: str
    value_sources: List[MetricValueSource] = field(default_factory=list)


@dataclass
class MetricsSnapshot:
    """All contexts captured at one point in time"""
    contexts: List[ContextSnapshot] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def iter_value_sources(self) -> Iterator[Tuple[str, MetricValueSource]]:
        """Yield (context, value source) pairs in registration order"""
        for context_snapshot in self.contexts:
            for value_source in context_snapshot.value_sources:
                yield context_snapshot.context, value_source

    def __len__(self) -> int:
        return sum(len(c.value_sources) for c in self.contexts)


class MetricsRegistry:
    """Central registry of value source providers grouped by context"""

    def __init__(self):
        self._providers: Dict[str, Dict[str, ValueSourceProvider]] = {}

    def register(self, context: str, name: str, provider: ValueSourceProvider):
        """Register a provider returning the current value source of a metric"""
        if not callable(provider):
            raise ValueError("Provider must be callable")

        self._providers.setdefault(context, {})[name] = provider
        logger.debug("Registered metric", context=context, metric=name)

    def unregister(self, context: str, name: str) -> bool:
        providers = self._providers.get(context)
        if not providers or name not in providers:
            return False

        del providers[name]
        if not providers:
            del self._providers[context]
        return True

    def list_contexts(self) -> List[str]:
        return list(self._providers.keys())

    def snapshot(self) -> MetricsSnapshot:
        """Capture the current value of every registered metric"""
        snapshot = MetricsSnapshot()

        for context, providers in self._providers.items():
            context_snapshot = ContextSnapshot(context=context)

            for name, provider in providers.items():
                try:
                    value_source = provider()
                except Exception as e:
                    logger.error("Metric provider failed", context=context, metric=name,
                                 error=str(e), event_type="snapshot_error", exc_info=True)
                    # Continue with other metrics even if one fails
                    continue

                if value_source is not None:
                    context_snapshot.value_sources.append(value_source)

            snapshot.contexts.append(context_snapshot)

        return snapshot
