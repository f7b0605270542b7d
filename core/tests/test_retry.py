"""
core/tests/test_retry.py

Bounded exponential backoff.
"""

from __future__ import annotations

import unittest

from core.helpers.retry import RetryExhaustedError, backoff_delay, retry_call


class TestRetry(unittest.TestCase):
    def setUp(self) -> None:
        self.delays: list[float] = []

    def test_backoff_doubles(self) -> None:
        self.assertEqual([backoff_delay(n, 0.5) for n in (1, 2, 3)], [0.5, 1.0, 2.0])

    def test_succeeds_after_transient_errors(self) -> None:
        calls = iter([TimeoutError("t1"), OSError("t2"), "ok"])

        def fn():
            item = next(calls)
            if isinstance(item, Exception):
                raise item
            return item

        self.assertEqual(retry_call(fn, operation="load", sleep=self.delays.append), "ok")
        self.assertEqual(self.delays, [0.5, 1.0])

    def test_exhaustion(self) -> None:
        def fn():
            raise ConnectionError("down")

        with self.assertRaises(RetryExhaustedError) as ctx:
            retry_call(fn, operation="save", max_attempts=4, base_delay=0.1, sleep=self.delays.append)
        self.assertEqual(ctx.exception.attempts, 4)
        self.assertIsInstance(ctx.exception.last_error, ConnectionError)
        self.assertEqual(len(self.delays), 3)

    def test_other_errors_propagate(self) -> None:
        def fn():
            raise ValueError("bug")

        with self.assertRaises(ValueError):
            retry_call(fn, operation="save", sleep=self.delays.append)
        self.assertEqual(self.delays, [])


if __name__ == "__main__":
    unittest.main()
