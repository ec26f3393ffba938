from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, status

from src.api.dependencies import get_flow_runtime, refresh_session
from src.api.request_models import (
    FlowAbandonRequest,
    FlowAdvanceRequest,
    FlowSnapshotResponse,
    FlowStartRequest,
)
from src.api.routers.flow_http_errors import raise_flow_http_exception
from src.api.routers.flows_config import FlowRuntime
from src.core.flows import (
    ActiveFlowExistsError,
    AdvanceResult,
    FlowNotFoundError,
    TransactionFlowController,
    TransactionFlowError,
)
from src.infrastructure.banking_api import BankingApiError

router = APIRouter(tags=["Transaction Flows"])

FlowIdPath = Annotated[
    str, Path(description="Flow identifier returned on start.", examples=["fl_1a2b3c4d5e6f"])
]


def _snapshot(controller: TransactionFlowController) -> FlowSnapshotResponse:
    return FlowSnapshotResponse(
        state=controller.snapshot(),
        primary_action_enabled=controller.primary_action_enabled(),
    )


def _controller(runtime: FlowRuntime, flow_id: str) -> TransactionFlowController:
    try:
        return runtime.engine.get_flow(flow_id)
    except FlowNotFoundError as exc:
        raise_flow_http_exception(exc)


@router.post(
    "/flows",
    response_model=FlowSnapshotResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start Transaction Flow",
    description=(
        "Starts a guided flow for the given kind. Only one flow may be ACTIVE per session; "
        "starting another returns 409 ACTIVE_FLOW_EXISTS."
    ),
)
async def start_flow(
    payload: FlowStartRequest,
    runtime: Annotated[FlowRuntime, Depends(get_flow_runtime)] = None,
) -> FlowSnapshotResponse:
    try:
        if runtime.session.primary_wallet() is None and runtime.client.has_token:
            await refresh_session(runtime)
        controller = runtime.engine.start_flow(payload.kind)
    except (ActiveFlowExistsError, TransactionFlowError, BankingApiError) as exc:
        raise_flow_http_exception(exc)
    return _snapshot(controller)


@router.get(
    "/flows/{flow_id}",
    response_model=FlowSnapshotResponse,
    status_code=status.HTTP_200_OK,
    summary="Get Transaction Flow",
)
def get_flow(
    flow_id: FlowIdPath,
    runtime: Annotated[FlowRuntime, Depends(get_flow_runtime)] = None,
) -> FlowSnapshotResponse:
    return _snapshot(_controller(runtime, flow_id))


@router.post(
    "/flows/{flow_id}/advance",
    response_model=AdvanceResult,
    status_code=status.HTTP_200_OK,
    summary="Advance Transaction Flow",
    description=(
        "Runs the current step's continue action. Step failures are reported in the body "
        "`error` field; the HTTP status stays 200."
    ),
)
async def advance_flow(
    flow_id: FlowIdPath,
    payload: FlowAdvanceRequest,
    runtime: Annotated[FlowRuntime, Depends(get_flow_runtime)] = None,
) -> AdvanceResult:
    return await _controller(runtime, flow_id).advance(payload.payload)


@router.post(
    "/flows/{flow_id}/retreat",
    response_model=FlowSnapshotResponse,
    status_code=status.HTTP_200_OK,
    summary="Retreat Transaction Flow",
    description="Moves back one step; retreating from SELECTION abandons the flow.",
)
def retreat_flow(
    flow_id: FlowIdPath,
    runtime: Annotated[FlowRuntime, Depends(get_flow_runtime)] = None,
) -> FlowSnapshotResponse:
    controller = _controller(runtime, flow_id)
    controller.retreat()
    return _snapshot(controller)


@router.post(
    "/flows/{flow_id}/abandon",
    response_model=FlowSnapshotResponse,
    status_code=status.HTTP_200_OK,
    summary="Abandon Transaction Flow",
)
def abandon_flow(
    flow_id: FlowIdPath,
    payload: Optional[FlowAbandonRequest] = None,
    runtime: Annotated[FlowRuntime, Depends(get_flow_runtime)] = None,
) -> FlowSnapshotResponse:
    controller = _controller(runtime, flow_id)
    controller.abandon((payload or FlowAbandonRequest()).reason)
    return _snapshot(controller)
