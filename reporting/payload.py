"""Bulk payload accumulated during one report run"""
import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from numbers import Number
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
from metrics.models import MeterSetItem, MetricValueSource, SetItem
from .extensions import add_meter_values


NameFormatter = Callable[[str, str], str]

ITEMS_SUFFIX = " items"


@dataclass
class Record:
    """One flattened metric document"""
    type: str
    name: str
    tags: Dict[str, str]
    fields: Dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_document(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "name": self.name,
            "tags": dict(self.tags),
            "fields": dict(self.fields),
            "timestamp": self.timestamp.isoformat(),
        }


def merge_tags(*tag_sets: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Merge tag sets left to right; later sets win on key collision"""
    merged: Dict[str, str] = {}
    for tags in tag_sets:
        if tags:
            merged.update(tags)
    return merged


def finite_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Fields without NaN or infinite float values"""
    return {k: v for k, v in fields.items()
            if not (isinstance(v, float) and not math.isfinite(v))}


def encode_bulk(records: Iterable[Record], index: str) -> str:
    """Encode records as Elasticsearch bulk index actions, newline terminated"""
    action = json.dumps({"index": {"_index": index}})
    lines = []
    for record in records:
        lines.append(action)
        lines.append(json.dumps(record.to_document(), default=str, allow_nan=False))
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


class BulkPayloadBuilder:
    """Accumulates records of a single report run.

    Not thread-safe: a builder belongs to one reporter and is only touched
    between ``init`` and ``clear`` of the same run.
    """

    def __init__(self, global_tags: Optional[Mapping[str, str]] = None):
        self.global_tags: Dict[str, str] = dict(global_tags or {})
        self._records: List[Record] = []
        self.dropped_fields = 0
        self._timestamp = datetime.now(timezone.utc)

    @property
    def payload(self) -> List[Record]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def init(self, timestamp: Optional[datetime] = None) -> None:
        """Begin a new run, discarding anything left from an unflushed one"""
        self._records.clear()
        self._timestamp = timestamp or datetime.now(timezone.utc)

    def clear(self) -> None:
        self._records.clear()

    def pack(self, kind: str, name: str, fields: Mapping[str, Any], tags: Mapping[str, str]) -> Record:
        """Append a record; non-finite float fields are left out and counted in ``dropped_fields``"""
        data = finite_fields(fields)
        self.dropped_fields += len(fields) - len(data)

        record = Record(
            type=kind,
            name=name,
            tags=merge_tags(self.global_tags, tags),
            fields=data,
            timestamp=self._timestamp,
        )
        self._records.append(record)
        return record

    def pack_value_source(self,
                          kind: str,
                          name_formatter: NameFormatter,
                          context: str,
                          value_source: MetricValueSource,
                          fields: Optional[Mapping[str, Any]] = None,
                          tags: Optional[Mapping[str, str]] = None) -> Record:
        """Pack the aggregate record of a metric.

        Plain numeric values become the ``value`` field; ``fields`` holds the
        kind specific statistics and is merged on top. ``tags`` are added
        after the metric's own tags.
        """
        data: Dict[str, Any] = {}
        value = value_source.value
        if isinstance(value, Number) and not isinstance(value, bool):
            data["value"] = value
        if fields:
            data.update(fields)

        return self.pack(kind, name_formatter(context, value_source.name), data,
                         merge_tags(value_source.tags, tags))

    def pack_counter_set_item(self,
                              kind: str,
                              name_formatter: NameFormatter,
                              context: str,
                              value_source: MetricValueSource,
                              item: SetItem,
                              report_item_percentages: bool = True) -> Record:
        data: Dict[str, Any] = {"total": item.count}
        if report_item_percentages:
            data["percent"] = item.percent

        return self.pack(
            kind,
            name_formatter(context, value_source.name + ITEMS_SUFFIX),
            data,
            merge_tags(value_source.tags, item.tag_dict),
        )

    def pack_meter_set_item(self,
                            kind: str,
                            name_formatter: NameFormatter,
                            context: str,
                            value_source: MetricValueSource,
                            item: MeterSetItem) -> Record:
        data: Dict[str, Any] = {"percent": item.percent}
        add_meter_values(item.value, data)

        return self.pack(
            kind,
            name_formatter(context, value_source.name + ITEMS_SUFFIX),
            data,
            merge_tags(value_source.tags, item.tag_dict),
        )

    def to_ndjson(self, index: str) -> str:
        return encode_bulk(self._records, index)
