from typing import NoReturn

from fastapi import HTTPException, status

from src.core.flows import (
    ActiveFlowExistsError,
    FlowNotFoundError,
    GatewayNetworkError,
    SessionExpiredError,
    TransactionFlowError,
)
from src.infrastructure.banking_api import BankingApiError

HTTP_422_UNPROCESSABLE = getattr(
    status,
    "HTTP_422_UNPROCESSABLE_CONTENT",
    status.HTTP_422_UNPROCESSABLE_ENTITY,
)


def raise_flow_http_exception(exc: Exception) -> NoReturn:
    if isinstance(exc, FlowNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, ActiveFlowExistsError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if isinstance(exc, SessionExpiredError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    if isinstance(exc, GatewayNetworkError):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    if isinstance(exc, BankingApiError):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message) from exc
    if isinstance(exc, TransactionFlowError):
        raise HTTPException(status_code=HTTP_422_UNPROCESSABLE, detail=str(exc)) from exc
    raise exc
