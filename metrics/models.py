"""Metric snapshot models handed to reporters each run"""
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, Mapping, Optional, Tuple, Union


TagPairs = Tuple[Tuple[str, str], ...]


class MetricKind(Enum):
    """Closed set of metric kinds a reporter knows how to pack"""
    GAUGE = "gauge"
    COUNTER = "counter"
    METER = "meter"
    TIMER = "timer"
    HISTOGRAM = "histogram"
    APDEX = "apdex"


def freeze_tags(tags: Union[Mapping[str, str], TagPairs, None]) -> TagPairs:
    """Normalize tags to a tuple of pairs in insertion order so items hash"""
    if not tags:
        return ()
    pairs = tags.items() if isinstance(tags, Mapping) else tags
    return tuple((str(k), str(v)) for k, v in pairs)


@dataclass(frozen=True)
class SetItem:
    """One tagged item of a counter"""
    tags: TagPairs
    count: int
    percent: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "tags", freeze_tags(self.tags))

    @property
    def tag_dict(self) -> Dict[str, str]:
        return dict(self.tags)


@dataclass(frozen=True)
class CounterValue:
    count: int
    items: Tuple[SetItem, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class MeterValue:
    """Meter rates, already scaled to ``rate_unit``"""
    count: int
    mean_rate: float
    one_minute_rate: float
    five_minute_rate: float
    fifteen_minute_rate: float
    rate_unit: str = "s"
    items: Tuple["MeterSetItem", ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class MeterSetItem:
    """One tagged item of a meter with its own rates"""
    tags: TagPairs
    percent: float
    value: MeterValue

    def __post_init__(self):
        object.__setattr__(self, "tags", freeze_tags(self.tags))

    @property
    def tag_dict(self) -> Dict[str, str]:
        return dict(self.tags)


@dataclass(frozen=True)
class HistogramValue:
    count: int
    sum: float
    last_value: float
    max: float
    mean: float
    median: float
    min: float
    percentile75: float
    percentile95: float
    percentile98: float
    percentile99: float
    percentile999: float
    sample_size: int
    std_dev: float
    last_user_value: Optional[str] = None
    max_user_value: Optional[str] = None
    min_user_value: Optional[str] = None


@dataclass(frozen=True)
class TimerValue:
    rate: MeterValue
    histogram: HistogramValue
    duration_unit: str = "ms"


@dataclass(frozen=True)
class ApdexValue:
    score: float
    satisfied: int
    tolerating: int
    frustrating: int
    sample_size: int


@dataclass(frozen=True)
class MetricValueSource:
    """Named, tagged value of one metric at snapshot time.

    Subclasses declare their ``kind``; reporters dispatch on it. The base
    class has no kind and is never packed.
    """
    kind: ClassVar[Optional[MetricKind]] = None

    name: str
    value: object
    tags: Dict[str, str] = field(default_factory=dict)
    unit: str = ""


@dataclass(frozen=True)
class GaugeValueSource(MetricValueSource):
    kind: ClassVar[MetricKind] = MetricKind.GAUGE


@dataclass(frozen=True)
class CounterValueSource(MetricValueSource):
    kind: ClassVar[MetricKind] = MetricKind.COUNTER

    report_set_items: bool = True
    report_item_percentages: bool = True


@dataclass(frozen=True)
class MeterValueSource(MetricValueSource):
    kind: ClassVar[MetricKind] = MetricKind.METER


@dataclass(frozen=True)
class TimerValueSource(MetricValueSource):
    kind: ClassVar[MetricKind] = MetricKind.TIMER


@dataclass(frozen=True)
class HistogramValueSource(MetricValueSource):
    kind: ClassVar[MetricKind] = MetricKind.HISTOGRAM


@dataclass(frozen=True)
class ApdexValueSource(MetricValueSource):
    kind: ClassVar[MetricKind] = MetricKind.APDEX
