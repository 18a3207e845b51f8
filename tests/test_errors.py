import pytest

from core.errors import ErrorKind, ServiceError, as_http_exception


@pytest.mark.parametrize(
    "kind, status_code, code",
    [
        (ErrorKind.NOT_FOUND, 404, "NOT_FOUND"),
        (ErrorKind.CONFLICT, 409, "CONFLICT"),
        (ErrorKind.INVALID_TRANSITION, 422, "INVALID_STATUS_TRANSITION"),
        (ErrorKind.UNAUTHORIZED, 401, "UNAUTHORIZED"),
        (ErrorKind.FORBIDDEN, 403, "FORBIDDEN"),
        (ErrorKind.VALIDATION_ERROR, 400, "VALIDATION_ERROR"),
        (ErrorKind.RATE_LIMITED, 429, "RATE_LIMITED"),
    ],
)
def test_error_kind_maps_to_status_and_code(kind, status_code, code):
    exc = as_http_exception(ServiceError(kind, "boom"))
    assert exc.status_code == status_code
    assert exc.detail == {"message": "boom", "code": code}


def test_unauthorized_carries_bearer_challenge():
    exc = as_http_exception(ServiceError(ErrorKind.UNAUTHORIZED, "no token"))
    assert exc.headers == {"WWW-Authenticate": "Bearer"}

    exc = as_http_exception(ServiceError(ErrorKind.CONFLICT, "taken", code="DUPLICATE_EMAIL"))
    assert exc.headers is None
    assert exc.detail["code"] == "DUPLICATE_EMAIL"
