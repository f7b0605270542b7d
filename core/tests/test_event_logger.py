"""
core/tests/test_event_logger.py

SQLite event log and JSON export.
"""

from __future__ import annotations

import json
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from core.logging.logic.log_export_utils import export_logs_to_json
from core.logging.logic.logger import EventLogger


class TestEventLogger(unittest.TestCase):
    def setUp(self) -> None:
        self.log = EventLogger(":memory:")

    def tearDown(self) -> None:
        self.log.close()

    def test_log_and_query(self) -> None:
        ts = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
        entry = self.log.log("documents.audit", "document_viewed", user_id="alice",
                             reference_id="doc-1", data={"sequence": 1}, timestamp=ts)
        self.assertIsNotNone(entry.id)
        self.log.log("documents.audit", "document_viewed", reference_id="doc-2")

        rows = self.log.query_logs(feature="documents.audit", reference_id="doc-1")
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].timestamp, ts)
        self.assertEqual(rows[0].username, "unknown")
        self.assertEqual(json.loads(rows[0].data), {"sequence": 1})

    def test_filter_by_level(self) -> None:
        self.log.log("f", "a", level="INFO")
        self.log.log("f", "b", level="WARNING")
        self.assertEqual([r.event for r in self.log.query_logs(level="WARNING")], ["b"])

    def test_export(self) -> None:
        self.log.log("f", "a", message="hello")
        rows = [r.as_dict() for r in self.log.query_logs()]
        with tempfile.TemporaryDirectory() as tmp:
            path = export_logs_to_json(rows, Path(tmp) / "logs.json")
            data = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(data[0]["message"], "hello")


if __name__ == "__main__":
    unittest.main()
