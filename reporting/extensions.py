"""Expand metric values into document field mappings"""
from typing import Any, Dict
from metrics.models import ApdexValue, HistogramValue, MeterValue


def add_meter_values(meter: MeterValue, values: Dict[str, Any]) -> None:
    values["count.meter"] = meter.count
    values["rate1m"] = meter.one_minute_rate
    values["rate5m"] = meter.five_minute_rate
    values["rate15m"] = meter.fifteen_minute_rate
    values["rate.mean"] = meter.mean_rate


def add_histogram_values(histogram: HistogramValue, values: Dict[str, Any]) -> None:
    values["samples"] = histogram.sample_size
    values["last"] = histogram.last_value
    values["count.hist"] = histogram.count
    values["sum"] = histogram.sum
    values["min"] = histogram.min
    values["max"] = histogram.max
    values["mean"] = histogram.mean
    values["median"] = histogram.median
    values["stddev"] = histogram.std_dev
    values["p999"] = histogram.percentile999
    values["p99"] = histogram.percentile99
    values["p98"] = histogram.percentile98
    values["p95"] = histogram.percentile95
    values["p75"] = histogram.percentile75

    # User values are only present when samples were tagged
    if histogram.last_user_value is not None:
        values["user.last"] = histogram.last_user_value
    if histogram.min_user_value is not None:
        values["user.min"] = histogram.min_user_value
    if histogram.max_user_value is not None:
        values["user.max"] = histogram.max_user_value


def add_apdex_values(apdex: ApdexValue, values: Dict[str, Any]) -> None:
    values["samples"] = apdex.sample_size
    values["score"] = apdex.score
    values["satisfied"] = apdex.satisfied
    values["tolerating"] = apdex.tolerating
    values["frustrating"] = apdex.frustrating
