"""Metric reporting to Elasticsearch"""
from .payload import BulkPayloadBuilder, Record, encode_bulk
from .formatting import default_name_formatter
from .client import BulkClient, ElasticSearchBulkClient
from .reporter import ElasticSearchReporter, ReportState

__all__ = [
    "BulkPayloadBuilder",
    "Record",
    "encode_bulk",
    "default_name_formatter",
    "BulkClient",
    "ElasticSearchBulkClient",
    "ElasticSearchReporter",
    "ReportState",
]
