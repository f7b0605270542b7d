"""
log_export_utils.py

JSON export of log/audit records.

- export_logs_to_json(logs, filepath)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List


def export_logs_to_json(logs: List[dict], filepath: str | Path) -> Path:
    """Write *logs* to *filepath* as UTF-8 JSON (pretty-printed)."""
    target = Path(filepath)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as fh:
        json.dump(logs, fh, indent=4, ensure_ascii=False, default=str)
    return target
