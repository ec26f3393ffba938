from dataclasses import dataclass
from typing import Optional

import httpx

from src.api.routers.runtime_utils import env_float, env_str
from src.core.flows import FlowEngine
from src.infrastructure.banking_api import BankingApiClient, RemoteTransactionGateway
from src.infrastructure.banking_api.client import DEFAULT_BASE_URL
from src.infrastructure.session import InMemorySession, RecordingNavigationSink

DEFAULT_TIMEOUT_SECONDS = 30.0


def banking_api_base_url() -> str:
    return env_str("BANKING_API_BASE_URL") or DEFAULT_BASE_URL


def banking_api_timeout_seconds() -> float:
    return env_float("BANKING_API_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)


@dataclass
class FlowRuntime:
    client: BankingApiClient
    session: InMemorySession
    navigation: RecordingNavigationSink
    engine: FlowEngine


def build_flow_runtime(
    *, transport: Optional[httpx.AsyncBaseTransport] = None
) -> FlowRuntime:
    client = BankingApiClient(
        base_url=banking_api_base_url(),
        token=env_str("BANKING_API_TOKEN"),
        app_id=env_str("BANKING_APP_ID"),
        timeout_seconds=banking_api_timeout_seconds(),
        transport=transport,
    )
    session = InMemorySession(on_logout=lambda _reason: client.clear_token())
    navigation = RecordingNavigationSink()
    gateway = RemoteTransactionGateway(client)
    engine = FlowEngine(
        verification=gateway,
        quotes=gateway,
        commits=gateway,
        session=session,
        navigation=navigation,
    )
    return FlowRuntime(client=client, session=session, navigation=navigation, engine=engine)
