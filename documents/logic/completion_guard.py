"""
At-most-once completion per signer.

A submit is keyed by ``(document_id, signer_id, attempt)``. While a key is
in flight a second caller with the same key is refused; once a key has
succeeded it is remembered and every replay is refused as a duplicate.
Document-level transitions are additionally serialised by a per-document
lock, since completing the document is a shared mutation point.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, Set, Tuple

from documents.exceptions.errors import DuplicateSubmissionError


@dataclass(frozen=True)
class IdempotencyKey:
    document_id: str
    signer_id: str
    attempt: str = "1"

    def as_tuple(self) -> Tuple[str, str, str]:
        return (self.document_id, self.signer_id, self.attempt)


class CompletionGuard:
    def __init__(self) -> None:
        self._mutex = threading.Lock()
        self._in_flight: Set[Tuple[str, str, str]] = set()
        self._done: Set[Tuple[str, str, str]] = set()
        self._doc_locks: Dict[str, threading.RLock] = {}

    def document_lock(self, document_id: str) -> threading.RLock:
        with self._mutex:
            lock = self._doc_locks.get(document_id)
            if lock is None:
                lock = self._doc_locks[document_id] = threading.RLock()
            return lock

    def is_done(self, key: IdempotencyKey) -> bool:
        with self._mutex:
            return key.as_tuple() in self._done

    @contextmanager
    def single_flight(self, key: IdempotencyKey) -> Iterator["Flight"]:
        """
        Run the body at most once for *key*.

        The key counts as done only if the body calls ``flight.succeed()``
        and returns normally; rejected or failed submits free it for a retry.
        """
        k = key.as_tuple()
        with self._mutex:
            if k in self._done:
                raise DuplicateSubmissionError(k, in_flight=False)
            if k in self._in_flight:
                raise DuplicateSubmissionError(k, in_flight=True)
            self._in_flight.add(k)
        flight = Flight()
        ok = False
        try:
            with self.document_lock(key.document_id):
                yield flight
            ok = True
        finally:
            with self._mutex:
                self._in_flight.discard(k)
                if ok and flight.succeeded:
                    self._done.add(k)


class Flight:
    succeeded = False

    def succeed(self) -> None:
        self.succeeded = True
