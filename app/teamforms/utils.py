from __future__ import annotations

import itertools
import os
import time
from collections.abc import Iterable, Mapping
from typing import Any


def _reseed_ids() -> None:
    """Fresh nonce and counter; forked workers must not share the parent's."""
    global _id_counter, _process_nonce
    _id_counter = itertools.count(int.from_bytes(os.urandom(3), "big"))
    _process_nonce = os.urandom(5)


_reseed_ids()
if hasattr(os, "register_at_fork"):
    os.register_at_fork(after_in_child=_reseed_ids)


def new_id() -> str:
    """
    24-hex identifier: 4-byte timestamp, 5-byte process nonce, 3-byte counter.
    Unique across processes, including workers forked after import. Lists are
    ordered by created_at, not by id.
    """
    ts = int(time.time()).to_bytes(4, "big")
    counter = (next(_id_counter) & 0xFFFFFF).to_bytes(3, "big")
    return (ts + _process_nonce + counter).hex()


def pick(source: Mapping[str, Any], keys: Iterable[str]) -> dict[str, Any]:
    """Subset of `source` limited to `keys` that are present."""
    return {k: source[k] for k in keys if k in source}


def parse_bool(value: Any) -> bool | None:
    """Parse 'true'/'false'/'' (and real booleans). Returns None if unrecognized."""
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    s = str(value).strip().lower()
    if s == "true":
        return True
    if s in ("false", ""):
        return False
    return None


def parse_positive_int(value: Any, default: int) -> int:
    try:
        n = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


def parse_etag(value: str | None) -> int | None:
    """Parse an If-Match header ('"3"', 'W/"3"' or '3') into a version number."""
    if not value:
        return None
    s = value.strip()
    if s.startswith("W/"):
        s = s[2:]
    s = s.strip('"')
    try:
        return int(s)
    except ValueError:
        return None
