from __future__ import annotations

import threading

import pytest

from documents.exceptions.errors import DuplicateSubmissionError
from documents.logic.completion_guard import CompletionGuard, IdempotencyKey


def test_succeeded_key_is_never_run_again() -> None:
    guard = CompletionGuard()
    key = IdempotencyKey("doc-1", "alice")
    with guard.single_flight(key) as flight:
        flight.succeed()
    assert guard.is_done(key)
    with pytest.raises(DuplicateSubmissionError) as info:
        with guard.single_flight(key):
            pytest.fail("body must not run")
    assert info.value.in_flight is False


def test_unsuccessful_attempt_can_be_retried() -> None:
    guard = CompletionGuard()
    key = IdempotencyKey("doc-1", "alice")
    with guard.single_flight(key):
        pass
    with pytest.raises(RuntimeError):
        with guard.single_flight(key) as flight:
            flight.succeed()
            raise RuntimeError("storage down")
    assert not guard.is_done(key)
    with guard.single_flight(key) as flight:
        flight.succeed()
    assert guard.is_done(key)


def test_new_attempt_id_is_a_new_key() -> None:
    guard = CompletionGuard()
    with guard.single_flight(IdempotencyKey("doc-1", "alice", "1")) as flight:
        flight.succeed()
    with guard.single_flight(IdempotencyKey("doc-1", "alice", "2")) as flight:
        flight.succeed()


def test_concurrent_duplicate_is_refused() -> None:
    guard = CompletionGuard()
    key = IdempotencyKey("doc-1", "alice")
    entered = threading.Event()
    release = threading.Event()
    errors = []

    def first():
        with guard.single_flight(key) as flight:
            entered.set()
            release.wait(5)
            flight.succeed()

    worker = threading.Thread(target=first)
    worker.start()
    assert entered.wait(5)
    try:
        with guard.single_flight(key):
            pass
    except DuplicateSubmissionError as ex:
        errors.append(ex)
    release.set()
    worker.join(5)

    assert len(errors) == 1
    assert errors[0].in_flight is True
    assert guard.is_done(key)


def test_document_lock_is_shared_per_document() -> None:
    guard = CompletionGuard()
    assert guard.document_lock("doc-1") is guard.document_lock("doc-1")
    assert guard.document_lock("doc-1") is not guard.document_lock("doc-2")
