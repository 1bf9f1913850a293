from __future__ import annotations

from typing import Any
import hashlib
import json


def report_digest(report: Any) -> str:
    """Stable hex digest of a battle report, for replay comparisons."""

    if hasattr(report, "to_json"):
        s = report.to_json()
    else:
        s = json.dumps(report, sort_keys=True)
    return hashlib.blake2b(s.encode("utf-8"), digest_size=16).hexdigest()
