from __future__ import annotations

from authgate.core.errors import APIError, Conflict, ServiceUnavailable, Unauthorized
from authgate.services._shared.base import UNAUTHORIZED_MESSAGE, BaseService
from authgate.services._shared.errors import (
    DuplicateIdentifierError,
    InvalidCredentialsError,
    LedgerUnavailableError,
    LedgerWriteError,
    ServiceError,
    TokenExpiredError,
    WeakCredentialError,
)


def test_every_authentication_failure_maps_to_the_same_401():
    service = BaseService()
    for exc in (InvalidCredentialsError(), TokenExpiredError("x"), LedgerUnavailableError("y")):
        translated = service.translate_exceptions(exc)
        assert isinstance(translated, Unauthorized)
        assert translated.status_code == 401
        assert translated.message == UNAUTHORIZED_MESSAGE


def test_duplicate_maps_to_conflict_without_echoing_identifier():
    translated = BaseService().translate_exceptions(DuplicateIdentifierError("alice"))
    assert isinstance(translated, Conflict)
    assert "alice" not in translated.message


def test_weak_credential_maps_to_422_with_rule():
    translated = BaseService().translate_exceptions(WeakCredentialError("too short", rule="min_length"))
    assert isinstance(translated, APIError)
    assert translated.status_code == 422
    assert translated.code == "weak_credential"
    assert translated.details == {"rule": "min_length"}


def test_other_service_errors_map_to_400_and_foreign_errors_pass_through():
    service = BaseService()
    assert service.translate_exceptions(ServiceError("nope")).status_code == 400
    boom = RuntimeError("boom")
    assert service.translate_exceptions(boom) is boom


def test_ledger_write_failure_maps_to_503_not_401():
    translated = BaseService().translate_exceptions(LedgerWriteError("down"))
    assert isinstance(translated, ServiceUnavailable)
    assert translated.status_code == 503
    assert translated.code == "service_unavailable"
