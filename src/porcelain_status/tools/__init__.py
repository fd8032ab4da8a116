from .status_tools import (
    git_status,
    parse_porcelain,
    read_status,
)

__all__ = [
    "git_status",
    "parse_porcelain",
    "read_status",
]
