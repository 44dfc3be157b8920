"""Porcelain v1 ``-z`` status parser.

The report is a flat byte buffer of NUL-terminated records::

    XY <path>\\0
    XY <new path>\\0<old path>\\0      (X is R or C)

Scanning is byte-oriented so paths may contain any byte except NUL,
including newlines. Anything that does not fit the layout raises
:class:`BadStatusFormat`; records are never skipped.
"""

from __future__ import annotations

import os
from typing import List

from gitsmart.git.errors import BadStatusFormat
from gitsmart.git.models import RENAME_OR_COPY, ChangeRecord

_NUL = 0
_SPACE = 0x20


def _decode_path(raw: bytes) -> str:
    """Decode a path field so it round-trips back to the same bytes."""
    return os.fsdecode(raw)


def _read_field(buf: bytes, start: int) -> tuple[bytes, int]:
    """Return the NUL-terminated field at *start* and the offset after its NUL."""
    end = buf.find(b"\0", start)
    if end < 0:
        raise BadStatusFormat(f"unterminated path field at offset {start}")
    field = buf[start:end]
    if not field:
        raise BadStatusFormat(f"empty path field at offset {start}")
    return field, end + 1


def parse_porcelain_z(buf: bytes) -> List[ChangeRecord]:
    """Parse a ``git status --porcelain -z`` buffer into change records."""
    records: List[ChangeRecord] = []
    idx = 0
    total = len(buf)

    while idx < total:
        if idx + 3 > total:
            raise BadStatusFormat(f"truncated record header at offset {idx}")
        x = chr(buf[idx])
        y = chr(buf[idx + 1])
        if buf[idx] == _NUL or buf[idx + 1] == _NUL:
            raise BadStatusFormat(f"missing status code at offset {idx}")
        if buf[idx + 2] != _SPACE:
            raise BadStatusFormat(f"expected space after status {x!r}{y!r} at offset {idx + 2}")

        first, idx = _read_field(buf, idx + 3)

        if x in RENAME_OR_COPY:
            second, idx = _read_field(buf, idx)
            records.append(
                ChangeRecord(
                    status_x=x,
                    status_y=y,
                    path=_decode_path(first),
                    old_path=_decode_path(second),
                )
            )
        else:
            records.append(ChangeRecord(status_x=x, status_y=y, path=_decode_path(first)))

    return records
