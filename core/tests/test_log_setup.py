"""
core/tests/test_log_setup.py

Root logger configuration from the [Logging] section.
"""

from __future__ import annotations

import logging
import unittest

from core.config.config_service import ConfigService
from core.logging.logic.log_setup import configure_logging


class TestLogSetup(unittest.TestCase):
    def setUp(self) -> None:
        self.root = logging.getLogger()
        self.saved_level = self.root.level
        self.saved_handlers = list(self.root.handlers)

    def tearDown(self) -> None:
        self.root.handlers[:] = self.saved_handlers
        self.root.setLevel(self.saved_level)

    def test_level_from_config_and_single_handler(self) -> None:
        cfg = ConfigService(environ={"ESIGN_LOGGING__LEVEL": "debug"})
        configure_logging(cfg)
        configure_logging(cfg)
        self.assertEqual(self.root.level, logging.DEBUG)
        ours = [h for h in self.root.handlers if getattr(h, "_esign_handler", False)]
        self.assertEqual(len(ours), 1)

    def test_unknown_level_falls_back_to_info(self) -> None:
        configure_logging(ConfigService(environ={"ESIGN_LOGGING__LEVEL": "chatty"}))
        self.assertEqual(self.root.level, logging.INFO)


if __name__ == "__main__":
    unittest.main()
