"""Metric snapshot models and registry"""
from .models import (
    MetricKind,
    MetricValueSource,
    GaugeValueSource,
    CounterValueSource,
    MeterValueSource,
    TimerValueSource,
    HistogramValueSource,
    ApdexValueSource,
    CounterValue,
    SetItem,
    MeterValue,
    MeterSetItem,
    HistogramValue,
    TimerValue,
    ApdexValue,
)
from .registry import MetricsRegistry, MetricsSnapshot, ContextSnapshot

__all__ = [
    "MetricKind",
    "MetricValueSource",
    "GaugeValueSource",
    "CounterValueSource",
    "MeterValueSource",
    "TimerValueSource",
    "HistogramValueSource",
    "ApdexValueSource",
    "CounterValue",
    "SetItem",
    "MeterValue",
    "MeterSetItem",
    "HistogramValue",
    "TimerValue",
    "ApdexValue",
    "MetricsRegistry",
    "MetricsSnapshot",
    "ContextSnapshot",
]
