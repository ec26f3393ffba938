from typing import Annotated, Any, Awaitable, Dict, List, TypeVar

from fastapi import APIRouter, Depends, Path, Query, status

from src.api.dependencies import get_flow_runtime
from src.api.routers.flow_http_errors import raise_flow_http_exception
from src.api.routers.flows_config import FlowRuntime
from src.core.flows import SessionExpiredError, TransactionFlowError
from src.infrastructure.banking_api import BankingApiError

router = APIRouter(prefix="/catalog", tags=["Selection Catalogs"])

T = TypeVar("T")


async def _read(runtime: FlowRuntime, call: Awaitable[T]) -> T:
    try:
        return await call
    except SessionExpiredError as exc:
        runtime.session.force_logout(exc.reason)
        raise_flow_http_exception(exc)
    except (TransactionFlowError, BankingApiError) as exc:
        raise_flow_http_exception(exc)


@router.get("/banks", status_code=status.HTTP_200_OK, summary="List Destination Banks")
async def list_banks(
    runtime: Annotated[FlowRuntime, Depends(get_flow_runtime)] = None,
) -> List[Dict[str, Any]]:
    return await _read(runtime, runtime.client.list_banks())


@router.get(
    "/data-bundles/{network}", status_code=status.HTTP_200_OK, summary="List Data Bundles"
)
async def list_data_bundles(
    network: Annotated[str, Path(description="Network provider code.", examples=["mtn"])],
    runtime: Annotated[FlowRuntime, Depends(get_flow_runtime)] = None,
) -> List[Dict[str, Any]]:
    return await _read(runtime, runtime.client.list_data_bundles(network))


@router.get("/meter-services", status_code=status.HTTP_200_OK, summary="Get Meter Services")
async def get_meter_services(
    runtime: Annotated[FlowRuntime, Depends(get_flow_runtime)] = None,
) -> Dict[str, Any]:
    return await _read(runtime, runtime.client.get_meter_services())


@router.get(
    "/cable-tv-plans/{provider}", status_code=status.HTTP_200_OK, summary="List Cable TV Plans"
)
async def list_cable_tv_plans(
    provider: Annotated[str, Path(description="Cable TV provider.", examples=["dstv"])],
    runtime: Annotated[FlowRuntime, Depends(get_flow_runtime)] = None,
) -> List[Dict[str, Any]]:
    return await _read(runtime, runtime.client.list_cable_tv_plans(provider))


@router.get(
    "/fixed-deposit-products",
    status_code=status.HTTP_200_OK,
    summary="List Fixed Deposit Products",
)
async def list_fixed_deposit_products(
    page: Annotated[int, Query(ge=1, examples=[1])] = 1,
    items_per_page: Annotated[int, Query(ge=1, le=100, examples=[20])] = 20,
    runtime: Annotated[FlowRuntime, Depends(get_flow_runtime)] = None,
) -> List[Dict[str, Any]]:
    return await _read(
        runtime,
        runtime.client.list_fixed_deposit_products(page=page, items_per_page=items_per_page),
    )


@router.get("/exchange-rate", status_code=status.HTTP_200_OK, summary="Get Exchange Rates")
async def get_exchange_rates(
    runtime: Annotated[FlowRuntime, Depends(get_flow_runtime)] = None,
) -> Dict[str, Any]:
    return await _read(runtime, runtime.client.get_exchange_rates())
