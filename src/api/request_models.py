from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from src.core.flows import FlowState, TransactionKind


class FlowStartRequest(BaseModel):
    kind: TransactionKind = Field(
        description="Transaction kind whose step plan the new flow follows.",
        examples=["BANK_TRANSFER"],
    )


class FlowAdvanceRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {"payload": {"account_number": "0123456789"}},
        }
    }

    payload: Dict[str, Any] = Field(
        default_factory=dict,
        description=(
            "Fields captured by the current step. The AUTHORIZATION step expects `pin`, "
            "which is forwarded to a single commit call and never stored."
        ),
    )


class FlowAbandonRequest(BaseModel):
    reason: str = Field(
        default="USER_ABANDONED",
        description="Reason recorded with the abandonment signal.",
        examples=["USER_ABANDONED"],
    )


class FlowSnapshotResponse(BaseModel):
    state: FlowState = Field(description="Immutable copy of the flow state.")
    primary_action_enabled: bool = Field(
        description="Whether the current step's continue action may be triggered without input."
    )


class SessionBalanceResponse(BaseModel):
    balance: Decimal = Field(description="Displayed wallet balance.", examples=["7990.00"])
    wallet_number: Optional[str] = Field(
        default=None, description="Primary wallet number.", examples=["3012345678"]
    )
    currency_code: Optional[str] = Field(default=None, examples=["NGN"])
    logged_out: bool = Field(description="True once the remote service rejected the session.")


class SessionRefreshRequest(BaseModel):
    token: Optional[str] = Field(
        default=None,
        description="Replacement bearer token, used after a session expiry.",
    )
