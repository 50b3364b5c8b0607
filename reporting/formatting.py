"""Metric name formatting"""
import re
from .payload import NameFormatter


_INVALID_CHARS = re.compile(r"[^a-z0-9_.\-]+")


def sanitize(value: str) -> str:
    """Lowercase and replace anything outside [a-z0-9_.-] with underscores"""
    return _INVALID_CHARS.sub("_", value.strip().lower()).strip("_")


def default_name_formatter(separator: str = "__") -> NameFormatter:
    """Build a formatter producing ``<context><separator><name>``"""

    def format_name(context: str, name: str) -> str:
        if not context or not context.strip():
            return sanitize(name)
        return f"{sanitize(context)}{separator}{sanitize(name)}"

    return format_name
