"""Elasticsearch metric reporter: packs a snapshot and flushes it in bulk"""
import asyncio
import math
import numbers
import time
from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional
from metrics.models import (
    ApdexValueSource,
    CounterValueSource,
    GaugeValueSource,
    HistogramValueSource,
    MeterValueSource,
    MetricKind,
    MetricValueSource,
    TimerValueSource,
)
from metrics.registry import MetricsSnapshot
from logging_config import get_logger, log_report_run
from .client import BulkClient
from .extensions import add_apdex_values, add_histogram_values, add_meter_values
from .payload import BulkPayloadBuilder, NameFormatter


logger = get_logger(__name__)


class ReportState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    FLUSHING = "flushing"


class ElasticSearchReporter:
    """Report run controller.

    One run at a time: ``start_report_run`` -> ``report_metric`` for every
    value source -> ``end_and_flush_report_run``. Overlapping runs on the same
    instance must be serialized by the caller.
    """

    def __init__(self,
                 client: BulkClient,
                 payload_builder: BulkPayloadBuilder,
                 report_interval: timedelta,
                 name_formatter: NameFormatter,
                 name: Optional[str] = None,
                 flush_timeout: Optional[float] = None):
        self.name = name or type(self).__name__
        self.report_interval = report_interval
        self.flush_timeout = flush_timeout

        self._client = client
        self._payload_builder = payload_builder
        self._name_formatter = name_formatter
        self._disposed = False

        self.state = ReportState.IDLE
        self.dropped_count = 0

        self._packers: Dict[MetricKind, Callable[[str, Any], None]] = {
            MetricKind.GAUGE: self._report_gauge,
            MetricKind.COUNTER: self._report_counter,
            MetricKind.METER: self._report_meter,
            MetricKind.TIMER: self._report_timer,
            MetricKind.HISTOGRAM: self._report_histogram,
            MetricKind.APDEX: self._report_apdex,
        }

    @property
    def payload_builder(self) -> BulkPayloadBuilder:
        return self._payload_builder

    def start_report_run(self, snapshot: Optional[MetricsSnapshot] = None) -> None:
        logger.debug("Starting report run", reporter=self.name)

        self._payload_builder.init(snapshot.timestamp if snapshot is not None else None)
        self.state = ReportState.RUNNING

    def report_metric(self, context: str, value_source: Optional[MetricValueSource]) -> None:
        """Pack one value source; unknown kinds and missing sources are skipped"""
        if value_source is None:
            return

        kind = getattr(value_source, "kind", None)
        packer = self._packers.get(kind) if isinstance(kind, MetricKind) else None
        if packer is None:
            self._drop("unrecognized_kind", context, value_source)
            return

        dropped_fields = self._payload_builder.dropped_fields
        try:
            packer(context, value_source)
        except Exception as e:
            logger.warning("Failed to pack metric", reporter=self.name, context=context,
                           metric=getattr(value_source, "name", None), error=str(e),
                           event_type="pack_error")
            self.dropped_count += 1
            return

        dropped_fields = self._payload_builder.dropped_fields - dropped_fields
        if dropped_fields:
            self._drop("non_finite_field", context, value_source, dropped_fields)

    def report_health(self, global_tags=None, healthy_checks=None, degraded_checks=None, unhealthy_checks=None) -> None:
        # Health checks are reported as metrics as well
        pass

    def report_environment(self, environment_info=None) -> None:
        pass

    async def end_and_flush_report_run(self, snapshot: Optional[MetricsSnapshot] = None) -> bool:
        """Write the payload through the client; the builder is cleared on every outcome"""
        logger.debug("Ending report run", reporter=self.name)

        self.state = ReportState.FLUSHING
        payload = self._payload_builder.payload
        try:
            if self.flush_timeout is not None:
                return bool(await asyncio.wait_for(self._client.write(payload), self.flush_timeout))
            return bool(await self._client.write(payload))
        except asyncio.TimeoutError:
            logger.error("Flush timed out", reporter=self.name, timeout=self.flush_timeout,
                         record_count=len(payload), event_type="flush_timeout")
            return False
        except asyncio.CancelledError:
            logger.warning("Flush cancelled", reporter=self.name, event_type="flush_cancelled")
            raise
        except Exception as e:
            logger.error("Flush failed", reporter=self.name, error=str(e),
                         error_type=type(e).__name__, event_type="flush_error", exc_info=True)
            return False
        finally:
            self._payload_builder.clear()
            self.state = ReportState.IDLE

    async def report(self, snapshot: MetricsSnapshot) -> bool:
        """Run one whole report cycle for a snapshot"""
        start_time = time.time()
        dropped_before = self.dropped_count

        self.start_report_run(snapshot)
        for context, value_source in snapshot.iter_value_sources():
            self.report_metric(context, value_source)

        records_count = len(self._payload_builder)
        success = await self.end_and_flush_report_run(snapshot)

        log_report_run(logger, self.name, records_count, time.time() - start_time, success,
                       dropped=self.dropped_count - dropped_before)
        return success

    def dispose(self) -> None:
        if not self._disposed:
            self._payload_builder.clear()
        self._disposed = True

    def _drop(self, reason: str, context: str, value_source: MetricValueSource, count: int = 1) -> None:
        self.dropped_count += count
        logger.debug("Dropped metric", reporter=self.name, reason=reason, context=context,
                     metric=getattr(value_source, "name", None), count=count, event_type="metric_dropped")

    def _report_gauge(self, context: str, value_source: GaugeValueSource) -> None:
        value = value_source.value
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            self._drop("non_numeric_gauge", context, value_source)
            return
        if math.isnan(value) or math.isinf(value):
            self._drop("non_finite_gauge", context, value_source)
            return

        self._payload_builder.pack_value_source(
            MetricKind.GAUGE.value, self._name_formatter, context, value_source,
            tags=_unit_tags(value_source))

    def _report_counter(self, context: str, value_source: CounterValueSource) -> None:
        counter = value_source.value
        if counter is None:
            return

        report_set_items = getattr(value_source, "report_set_items", False)
        if counter.items and report_set_items:
            for item in _distinct(counter.items):
                self._payload_builder.pack_counter_set_item(
                    MetricKind.COUNTER.value, self._name_formatter, context, value_source, item,
                    getattr(value_source, "report_item_percentages", False))

        self._payload_builder.pack_value_source(
            MetricKind.COUNTER.value, self._name_formatter, context, value_source,
            {"value": counter.count},
            tags=_unit_tags(value_source))

    def _report_meter(self, context: str, value_source: MeterValueSource) -> None:
        meter = value_source.value
        if meter is None:
            return

        for item in _distinct(meter.items):
            self._payload_builder.pack_meter_set_item(
                MetricKind.METER.value, self._name_formatter, context, value_source, item)

        data: Dict[str, Any] = {}
        add_meter_values(meter, data)
        self._payload_builder.pack_value_source(
            MetricKind.METER.value, self._name_formatter, context, value_source, data,
            tags=_unit_tags(value_source, unit_rate=meter.rate_unit))

    def _report_timer(self, context: str, value_source: TimerValueSource) -> None:
        timer = value_source.value
        if timer is None:
            return

        data: Dict[str, Any] = {}
        add_meter_values(timer.rate, data)
        add_histogram_values(timer.histogram, data)
        self._payload_builder.pack_value_source(
            MetricKind.TIMER.value, self._name_formatter, context, value_source, data,
            tags=_unit_tags(value_source, unit_rate=timer.rate.rate_unit, unit_dur=timer.duration_unit))

    def _report_histogram(self, context: str, value_source: HistogramValueSource) -> None:
        histogram = value_source.value
        if histogram is None:
            return

        data: Dict[str, Any] = {}
        add_histogram_values(histogram, data)
        self._payload_builder.pack_value_source(
            MetricKind.HISTOGRAM.value, self._name_formatter, context, value_source, data,
            tags=_unit_tags(value_source))

    def _report_apdex(self, context: str, value_source: ApdexValueSource) -> None:
        apdex = value_source.value
        if apdex is None:
            return

        data: Dict[str, Any] = {}
        add_apdex_values(apdex, data)
        self._payload_builder.pack_value_source(
            MetricKind.APDEX.value, self._name_formatter, context, value_source, data,
            tags=_unit_tags(value_source))


def _unit_tags(value_source: MetricValueSource, **units: str) -> Dict[str, str]:
    """Unit tags of an aggregate record; empty units are left out"""
    tags = {"unit": value_source.unit}
    tags.update(units)
    return {k: v for k, v in tags.items() if v}


def _distinct(items: Iterable) -> list:
    """Unique items in first-seen order"""
    return list(dict.fromkeys(items))
