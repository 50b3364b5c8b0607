"""Shared fixtures for reporter tests"""
import pytest

from metrics.models import ApdexValue, HistogramValue, MeterValue


@pytest.fixture
def meter_value():
    return MeterValue(
        count=120,
        mean_rate=2.0,
        one_minute_rate=1.5,
        five_minute_rate=1.2,
        fifteen_minute_rate=1.1,
    )


@pytest.fixture
def histogram_value():
    return HistogramValue(
        count=50,
        sum=1250.0,
        last_value=30.0,
        max=90.0,
        mean=25.0,
        median=22.0,
        min=1.0,
        percentile75=40.0,
        percentile95=70.0,
        percentile98=80.0,
        percentile99=85.0,
        percentile999=89.0,
        sample_size=50,
        std_dev=12.5,
    )


@pytest.fixture
def apdex_value():
    return ApdexValue(score=0.85, satisfied=70, tolerating=20, frustrating=10, sample_size=100)
