from .core.errors import (
    EntryFormatError,
    FramingError,
    HeaderFieldError,
    PorcelainParseError,
    PorcelainStatusError,
    StreamReadError,
)
from .core.models import PorcelainEntry, Status
from .core.parsers import parse_status, parse_status_bytes
from .tools import read_status

__all__ = [
    "EntryFormatError",
    "FramingError",
    "HeaderFieldError",
    "PorcelainEntry",
    "PorcelainParseError",
    "PorcelainStatusError",
    "Status",
    "StreamReadError",
    "parse_status",
    "parse_status_bytes",
    "read_status",
]
