import pytest
from fastapi import HTTPException

from src.api.routers.flow_http_errors import HTTP_422_UNPROCESSABLE, raise_flow_http_exception
from src.api.routers.runtime_utils import env_flag, env_float
from src.core.flows import (
    ActiveFlowExistsError,
    FlowNotFoundError,
    FlowValidationError,
    GatewayNetworkError,
    QuoteRejectedError,
    SessionExpiredError,
)
from src.infrastructure.banking_api import BankingApiError


@pytest.mark.parametrize(
    ("exc", "expected_status"),
    [
        (FlowNotFoundError("FLOW_NOT_FOUND"), 404),
        (ActiveFlowExistsError("ACTIVE_FLOW_EXISTS"), 409),
        (SessionExpiredError("SESSION_EXPIRED"), 401),
        (GatewayNetworkError("NETWORK_UNAVAILABLE"), 503),
        (FlowValidationError("AMOUNT_REQUIRED"), HTTP_422_UNPROCESSABLE),
        (QuoteRejectedError("QUOTE_REJECTED"), HTTP_422_UNPROCESSABLE),
        (BankingApiError(400, "Bad request"), 502),
    ],
)
def test_raise_flow_http_exception_maps_domain_errors(exc: Exception, expected_status: int) -> None:
    with pytest.raises(HTTPException) as caught:
        raise_flow_http_exception(exc)
    assert caught.value.status_code == expected_status
    assert caught.value.detail == str(exc)


def test_raise_flow_http_exception_reraises_unknown_error() -> None:
    with pytest.raises(RuntimeError, match="boom"):
        raise_flow_http_exception(RuntimeError("boom"))


def test_env_helpers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FLOW_TEST_FLAG", "Yes")
    monkeypatch.setenv("FLOW_TEST_TIMEOUT", "12.5")
    monkeypatch.delenv("FLOW_TEST_MISSING", raising=False)

    assert env_flag("FLOW_TEST_FLAG", False) is True
    assert env_flag("FLOW_TEST_MISSING", True) is True
    assert env_float("FLOW_TEST_TIMEOUT", 30.0) == 12.5
    assert env_float("FLOW_TEST_MISSING", 30.0) == 30.0

    monkeypatch.setenv("FLOW_TEST_TIMEOUT", "-1")
    with pytest.raises(RuntimeError, match="FLOW_TEST_TIMEOUT_INVALID"):
        env_float("FLOW_TEST_TIMEOUT", 30.0)
