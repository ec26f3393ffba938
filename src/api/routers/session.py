from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_flow_runtime, refresh_session
from src.api.request_models import SessionBalanceResponse, SessionRefreshRequest
from src.api.routers.flow_http_errors import raise_flow_http_exception
from src.api.routers.flows_config import FlowRuntime
from src.core.flows import TransactionFlowError
from src.infrastructure.banking_api import BankingApiError

router = APIRouter(tags=["Session"])


def _balance(runtime: FlowRuntime) -> SessionBalanceResponse:
    wallet = runtime.session.primary_wallet()
    return SessionBalanceResponse(
        balance=runtime.session.get_balance(),
        wallet_number=wallet.wallet_number if wallet else None,
        currency_code=wallet.currency_code if wallet else None,
        logged_out=runtime.session.logged_out,
    )


@router.get(
    "/session/balance",
    response_model=SessionBalanceResponse,
    status_code=status.HTTP_200_OK,
    summary="Get Displayed Balance",
    description="Balance as last reconciled from a server-confirmed transaction or profile load.",
)
def get_balance(
    runtime: Annotated[FlowRuntime, Depends(get_flow_runtime)] = None,
) -> SessionBalanceResponse:
    return _balance(runtime)


@router.post(
    "/session/refresh",
    response_model=SessionBalanceResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh Session Profile",
    description="Reloads the profile and primary wallet, optionally with a new bearer token.",
)
async def refresh(
    payload: Optional[SessionRefreshRequest] = None,
    runtime: Annotated[FlowRuntime, Depends(get_flow_runtime)] = None,
) -> SessionBalanceResponse:
    if payload is not None and payload.token:
        runtime.client.set_token(payload.token)
    try:
        await refresh_session(runtime)
    except (TransactionFlowError, BankingApiError) as exc:
        raise_flow_http_exception(exc)
    return _balance(runtime)
