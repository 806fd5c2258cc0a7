import hashlib
from typing import Any, Optional

import orjson

__all__ = ["etag_matches", "weak_etag"]


def weak_etag(payload: Any) -> str:
    """Deterministic weak ETag for a JSON-serializable payload.

    dict/list payloads are hashed over their sorted-key orjson encoding so key order
    does not change the tag; bytes and strings are hashed as-is.
    """
    if isinstance(payload, (bytes, bytearray)):
        raw = bytes(payload)
    elif isinstance(payload, str):
        raw = payload.encode("utf-8")
    else:
        raw = orjson.dumps(payload, option=orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS)
    return 'W/"' + hashlib.md5(raw).hexdigest() + '"'


def etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    if not if_none_match:
        return False
    candidates = {tag.strip() for tag in if_none_match.split(",")}
    return "*" in candidates or etag in candidates
