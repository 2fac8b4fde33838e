"""Tests for the error taxonomy and engine error translation."""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from src.planforge.core.exceptions import (
    ERROR_STATUS_CODES,
    ConflictError,
    ErrorKind,
    InvalidStateError,
    NotFoundError,
    PermanentError,
    PlanForgeError,
    TransientError,
)
from src.planforge.services.store_gateway import translate_error

pytestmark = pytest.mark.unit


def test_every_kind_has_a_status_code():
    assert set(ERROR_STATUS_CODES) == set(ErrorKind)


def test_str_includes_kind():
    error = NotFoundError("Subproject", "abc")

    assert str(error) == "NotFound: Subproject abc not found"
    assert error.message == "Subproject abc not found"


def test_conflict_is_an_invalid_state():
    error = ConflictError("changed underneath")

    assert isinstance(error, InvalidStateError)
    assert error.kind is ErrorKind.INVALID_STATE


class TestTranslateError:
    def test_operational_error_is_transient(self):
        exc = OperationalError("SELECT 1", {}, Exception("database is locked"))

        assert isinstance(translate_error(exc), TransientError)

    def test_connection_timeout_is_transient(self):
        assert isinstance(translate_error(TimeoutError()), TransientError)
        assert isinstance(translate_error(ConnectionResetError()), TransientError)

    def test_integrity_error_is_permanent(self):
        exc = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

        error = translate_error(exc)

        assert isinstance(error, PermanentError)
        assert "UNIQUE constraint failed" in error.message

    def test_programming_error_is_permanent(self):
        exc = ProgrammingError("SELECT nope", {}, Exception("no such table"))

        assert translate_error(exc).kind is ErrorKind.PERMANENT

    def test_invalidated_connection_is_transient(self):
        exc = ProgrammingError("SELECT 1", {}, Exception("gone"), connection_invalidated=True)

        assert isinstance(translate_error(exc), TransientError)

    def test_result_is_always_taxonomy_error(self):
        assert isinstance(translate_error(ValueError("odd")), PlanForgeError)
