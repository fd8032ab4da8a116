from __future__ import annotations

import logging
from typing import BinaryIO, Iterator

from .errors import FramingError, StreamReadError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

NUL = b"\x00"


def iter_nul_records(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[str]:
    """
    Split a byte stream into NUL-terminated text records.

    The stream is read incrementally; every record, including the last one,
    must be followed by a NUL byte or FramingError is raised once the input
    is exhausted. An empty stream yields nothing.

    Records are decoded as UTF-8 with surrogateescape so that non UTF-8 paths
    survive and can be recovered with os.fsencode().
    """
    buf = bytearray()
    # bytes of buf already searched for NUL
    scan = 0
    while True:
        try:
            chunk = stream.read(max(1, int(chunk_size)))
        except (OSError, ValueError) as e:
            # ValueError: the stream was closed under us
            raise StreamReadError(f"can't read git status output: {e}") from e

        if not chunk:
            break
        buf.extend(chunk)

        start = 0
        while True:
            i = buf.find(NUL, scan)
            if i < 0:
                break
            yield buf[start:i].decode("utf-8", errors="surrogateescape")
            start = scan = i + 1
        if start:
            del buf[:start]
        scan = len(buf)

    if buf:
        logger.debug("stream ended with %d unterminated bytes", len(buf))
        raise FramingError("last line doesn't end with a null byte")
