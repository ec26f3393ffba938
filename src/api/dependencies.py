from typing import Optional

from src.api.routers.flows_config import FlowRuntime, build_flow_runtime
from src.api.routers.runtime_utils import assert_feature_enabled
from src.core.flows import SessionExpiredError

_RUNTIME: Optional[FlowRuntime] = None


def get_flow_runtime() -> FlowRuntime:
    global _RUNTIME
    assert_feature_enabled(name="FLOW_API_ENABLED", default=True, detail="FLOW_API_DISABLED")
    if _RUNTIME is None:
        _RUNTIME = build_flow_runtime()
    return _RUNTIME


async def refresh_session(runtime: FlowRuntime) -> None:
    """Reload the profile and primary wallet from the remote service."""
    try:
        profile = await runtime.client.get_profile()
    except SessionExpiredError:
        runtime.session.force_logout("SESSION_EXPIRED")
        raise
    runtime.session.load_profile(profile)


async def shutdown_flow_runtime() -> None:
    global _RUNTIME
    if _RUNTIME is not None:
        await _RUNTIME.client.aclose()
    _RUNTIME = None


def reset_flow_runtime_for_tests(runtime: Optional[FlowRuntime] = None) -> None:
    global _RUNTIME
    _RUNTIME = runtime
