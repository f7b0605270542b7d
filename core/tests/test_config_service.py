"""
core/tests/test_config_service.py

Layer precedence of the configuration service.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from core.config.config_service import ConfigService


class TestConfigService(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = ConfigService(environ={})
        self.assertEqual(cfg.signing.backup_ttl_hours, 24.0)
        self.assertEqual(cfg.signing.autosave_quiet_seconds, 2.0)
        self.assertFalse(cfg.signing.enforce_signing_order)
        self.assertEqual(cfg.retry.max_attempts, 3)
        self.assertEqual(cfg.signature.canvas_width, 600)
        self.assertEqual(cfg.backup.encryption_key, "")

    def test_env_overrides_defaults(self) -> None:
        cfg = ConfigService(environ={
            "ESIGN_SIGNING__ENFORCE_SIGNING_ORDER": "yes",
            "ESIGN_RETRY__MAX_ATTEMPTS": "5",
            "UNRELATED": "1",
        })
        self.assertTrue(cfg.signing.enforce_signing_order)
        self.assertEqual(cfg.retry.max_attempts, 5)
        self.assertEqual(cfg.meta_source("Retry", "max_attempts")["layer"], "env")

    def test_machine_ini_wins(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            ini = Path(tmp) / "machine.ini"
            ini.write_text("[Retry]\nmax_attempts = 7\n\n[Logging]\nlevel = DEBUG\n", encoding="utf-8")
            cfg = ConfigService(environ={"ESIGN_CONFIG": str(ini), "ESIGN_RETRY__MAX_ATTEMPTS": "5"})
            self.assertEqual(cfg.retry.max_attempts, 7)
            self.assertEqual(cfg.logging.level, "DEBUG")
            self.assertEqual(cfg.meta_source("Retry", "max_attempts")["layer"], "machine")

    def test_get_with_cast(self) -> None:
        cfg = ConfigService(environ={})
        self.assertEqual(cfg.get("Signature", "stroke_width", cast=int), 3)
        self.assertIsNone(cfg.get("Signature", "missing"))


if __name__ == "__main__":
    unittest.main()
