"""
Integrity checksum over the data portion of a backup snapshot.

The digest covers exactly ``decks``, ``cards`` and ``studyProgress`` (in that
key order), serialized as compact JSON. Preferences and the checksum field are
not covered, so users can edit preferences in a backup without breaking it.

Numbers are written the way JavaScript's ``JSON.stringify`` writes them, so a
backup made by the browser app verifies here and the other way round.
"""

import hashlib
import json
import logging
import math
from decimal import Decimal
from typing import Any, Dict, Optional

from echocards.utils.serialization import JSONEncoder


logger = logging.getLogger(__name__)

_MISSING = object()

_encoder = JSONEncoder()


def js_number(value: float) -> str:
    """
    Format a float like JavaScript's ``Number.prototype.toString``.

    Both languages pick the shortest digits that round-trip; they differ in
    where they switch to exponent notation (``1e-7`` vs ``1e-07``,
    ``0.000015`` vs ``1.5e-05``, ``3`` vs ``3.0``).
    """
    if not math.isfinite(value):
        return "null"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    k = len(digits)
    # value == 0.<digits> * 10**n
    n = k + exponent

    if k <= n <= 21:
        body = digits + "0" * (n - k)
    elif 0 < n <= 21:
        body = f"{digits[:n]}.{digits[n:]}"
    elif -6 < n <= 0:
        body = "0." + "0" * -n + digits
    else:
        e = n - 1
        mantissa = digits if k == 1 else f"{digits[0]}.{digits[1:]}"
        body = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"
    return sign + body


def _compact_json(value: Any) -> str:
    if isinstance(value, dict):
        members = (f"{json.dumps(str(k), ensure_ascii=False)}:{_compact_json(v)}" for k, v in value.items())
        return "{" + ",".join(members) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_compact_json(v) for v in value) + "]"
    if isinstance(value, float):
        return js_number(value)
    if value is None or isinstance(value, (str, int)):
        return json.dumps(value, ensure_ascii=False)
    # datetimes and enums
    return _compact_json(_encoder.default(value))


def canonical_payload(decks: Any, cards: Any, study_progress: Any = _MISSING) -> str:
    """
    Build the canonical string the checksum is computed over.

    Arrays keep their order and objects keep their key order. When
    ``study_progress`` is not given at all the key is left out, matching a
    snapshot that has no ``studyProgress`` field; ``None`` is written as null.
    """
    payload: Dict[str, Any] = {"decks": decks, "cards": cards}
    if study_progress is not _MISSING:
        payload["studyProgress"] = study_progress

    return _compact_json(payload)


def compute_checksum(payload: str) -> str:
    """
    Return the SHA-256 hex digest of ``payload``.

    Returns an empty string if the digest cannot be computed; callers treat
    that as "no checksum".
    """
    try:
        return hashlib.sha256(payload.encode("utf-8", errors="surrogatepass")).hexdigest()
    except Exception as e:
        logger.error(f"Error generating checksum: {e}")
        return ""


def snapshot_checksum(snapshot: Dict[str, Any]) -> str:
    """Compute the checksum of a parsed snapshot's own data fields."""
    return compute_checksum(
        canonical_payload(
            snapshot.get("decks"),
            snapshot.get("cards"),
            snapshot.get("studyProgress", _MISSING),
        )
    )


def verify_snapshot_checksum(snapshot: Dict[str, Any]) -> Optional[bool]:
    """
    Check a snapshot's embedded checksum.

    Returns:
        None if the snapshot carries no checksum, otherwise whether it matches
    """
    expected = snapshot.get("checksum")
    if not expected:
        return None

    actual = snapshot_checksum(snapshot)
    matches = bool(actual) and actual == str(expected).lower()
    if not matches:
        logger.warning(f"Checksum mismatch: expected {expected}, computed {actual or '<none>'}")
    return matches
