from __future__ import annotations

import io
import logging
from enum import Enum
from typing import BinaryIO, Iterator

from .errors import EntryFormatError, FramingError, HeaderFieldError
from .models import PorcelainEntry, Status
from .tokenizer import DEFAULT_CHUNK_SIZE, iter_nul_records

logger = logging.getLogger(__name__)


class RecordKind(Enum):
    HEADER = "#"
    ORDINARY = "1"
    RENAME_COPY = "2"
    UNMERGED = "u"
    UNTRACKED = "?"
    IGNORED = "!"
    UNKNOWN = ""


_KINDS = {k.value: k for k in RecordKind if k.value}

# fixed space-separated fields before <path>, marker included
_FIXED_FIELDS = {
    RecordKind.ORDINARY: 8,
    RecordKind.RENAME_COPY: 9,
    RecordKind.UNMERGED: 10,
}

_XY_COUNTERS = {
    "A": "num_added",
    "D": "num_deleted",
    "M": "num_updated",
    "T": "num_updated",
    "R": "num_renamed",
    "C": "num_copied",
}

_OID_CHARS = frozenset("abcdefghijklmnopqrstuvwxyz0123456789")
_MAX_COUNT = 2**63 - 1


def classify_record(line: str) -> RecordKind:
    return _KINDS.get(line[:1], RecordKind.UNKNOWN)


def _parse_count(field: str, sign: str, text: str, line: str) -> int:
    digits = text[1:] if text.startswith(sign) else ""
    if not (digits and digits.isascii() and digits.isdigit()):
        raise HeaderFieldError(field, text, line)
    n = int(digits)
    if n > _MAX_COUNT:
        raise HeaderFieldError(field, text, line)
    return n


def parse_header(st: Status, line: str) -> None:
    """
    Decode one `#` record:
      # branch.oid <commit> | (initial)
      # branch.head <branch> | (detached)
      # branch.upstream <upstream_branch>
      # branch.ab +<ahead> -<behind>
    Unknown headers are skipped.
    """
    if not line.startswith("# "):
        logger.debug("skipping header %r", line)
        return
    key, sep, value = line[2:].partition(" ")
    if not sep:
        logger.debug("skipping header %r", line)
        return

    if key == "branch.oid":
        if value == "(initial)":
            st.is_initial = True
        elif value and set(value) <= _OID_CHARS:
            st.commit_sha1 = value
        else:
            logger.debug("skipping unrecognized branch.oid %r", value)
    elif key == "branch.head":
        if value == "(detached)":
            st.is_detached = True
        else:
            st.local_branch = value
    elif key == "branch.upstream":
        if value:
            st.remote_branch = value
    elif key == "branch.ab":
        fields = value.split(" ")
        if len(fields) != 2:
            raise HeaderFieldError("ahead/behind", value, line)
        st.ahead_count = _parse_count("ahead", "+", fields[0], line)
        st.behind_count = _parse_count("behind", "-", fields[1], line)
    else:
        logger.debug("skipping header %r", line)


def _split_entry(kind: RecordKind, line: str) -> list[str]:
    n = _FIXED_FIELDS[kind]
    parts = line.split(" ", n)
    if len(parts) != n + 1 or len(parts[1]) != 2 or not parts[n]:
        raise EntryFormatError(f"malformed {kind.name.lower()} entry: {line!r}")
    return parts


def _count_xy(st: Status, xy: str) -> None:
    # X is the index side, Y the worktree side; each is counted on its own
    for code in xy:
        if code == ".":
            continue
        attr = _XY_COUNTERS.get(code)
        if attr is None:
            logger.debug("not counting status code %r", code)
            continue
        setattr(st, attr, getattr(st, attr) + 1)


def decode_record(st: Status, line: str, records: Iterator[str]) -> None:
    """
    Apply one record to `st`. `records` is the remaining record stream; a
    rename/copy entry takes its original path from it.
    """
    kind = classify_record(line)

    if kind is RecordKind.HEADER:
        parse_header(st, line)

    elif kind is RecordKind.ORDINARY:
        parts = _split_entry(kind, line)
        _count_xy(st, parts[1])
        st.changes.append(PorcelainEntry(kind="ordinary", xy=parts[1], path=parts[8]))

    elif kind is RecordKind.RENAME_COPY:
        parts = _split_entry(kind, line)
        orig_path = next(records, None)
        if orig_path is None:
            raise FramingError(f"rename/copy entry without original path: {line!r}")
        _count_xy(st, parts[1])
        st.changes.append(
            PorcelainEntry(
                kind="rename_copy",
                xy=parts[1],
                path=parts[9],
                orig_path=orig_path,
                score=parts[8],
            )
        )

    elif kind is RecordKind.UNMERGED:
        parts = _split_entry(kind, line)
        st.num_conflicts += 1
        st.changes.append(PorcelainEntry(kind="unmerged", xy=parts[1], path=parts[10]))

    elif kind is RecordKind.UNTRACKED:
        if len(line) >= 3:
            st.untracked.append(line[2:])
            st.num_untracked += 1

    elif kind is RecordKind.IGNORED:
        if len(line) >= 3:
            st.ignored.append(line[2:])
            st.num_ignored += 1

    else:
        logger.debug("skipping unknown record %r", line[:1])


def parse_status(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Status:
    """
    Parse `git status -uall --porcelain=2 --branch -z` output read from
    `stream`. The first error aborts the parse and is raised as is.
    """
    st = Status()
    records = iter_nul_records(stream, chunk_size=chunk_size)
    for line in records:
        decode_record(st, line, records)
    logger.debug(
        "parsed status: branch=%r changes=%d untracked=%d",
        st.local_branch,
        len(st.changes),
        st.num_untracked,
    )
    return st


def parse_status_bytes(data: bytes) -> Status:
    return parse_status(io.BytesIO(data))
