from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TransactionKind(str, Enum):
    BANK_TRANSFER = "BANK_TRANSFER"
    WALLET_TRANSFER = "WALLET_TRANSFER"
    CRYPTO_TRANSFER = "CRYPTO_TRANSFER"
    CURRENCY_SWAP = "CURRENCY_SWAP"
    AIRTIME_PURCHASE = "AIRTIME_PURCHASE"
    DATA_BUNDLE_PURCHASE = "DATA_BUNDLE_PURCHASE"
    ELECTRICITY_PURCHASE = "ELECTRICITY_PURCHASE"
    CABLE_TV_SUBSCRIPTION = "CABLE_TV_SUBSCRIPTION"
    FIXED_DEPOSIT_INVESTMENT = "FIXED_DEPOSIT_INVESTMENT"


class StepID(str, Enum):
    SELECTION = "SELECTION"
    VERIFICATION = "VERIFICATION"
    AMOUNT_ENTRY = "AMOUNT_ENTRY"
    QUOTE = "QUOTE"
    AUTHORIZATION = "AUTHORIZATION"
    RESULT = "RESULT"


CANONICAL_STEP_ORDER: tuple[StepID, ...] = (
    StepID.SELECTION,
    StepID.VERIFICATION,
    StepID.AMOUNT_ENTRY,
    StepID.QUOTE,
    StepID.AUTHORIZATION,
    StepID.RESULT,
)

FlowStatus = Literal["ACTIVE", "COMPLETED", "ABANDONED", "SESSION_EXPIRED"]
FlowErrorCategory = Literal[
    "VALIDATION",
    "VERIFICATION_FAILURE",
    "INSUFFICIENT_FUNDS",
    "NETWORK",
    "SESSION_EXPIRED",
    "QUOTE_REJECTED",
    "COMMIT_FAILURE",
]

_CENT = Decimal("0.01")


def quantize_amount(value: Decimal) -> Decimal:
    return value.quantize(_CENT)


class PrimaryWallet(BaseModel):
    wallet_id: str = Field(description="Remote wallet identifier.", examples=["wal_01"])
    wallet_number: str = Field(
        description="Wallet number used as transfer source.", examples=["3012345678"]
    )
    balance: Decimal = Field(description="Server-reported wallet balance.", examples=["10000.00"])
    currency_code: Optional[str] = Field(
        default=None, description="Wallet currency code when reported.", examples=["NGN"]
    )

    @classmethod
    def from_profile(cls, profile: Dict[str, Any]) -> Optional["PrimaryWallet"]:
        wallet = profile.get("getPrimaryWallet") or profile.get("get_primary_wallet")
        if not isinstance(wallet, dict):
            return None
        currency = wallet.get("currency")
        return cls(
            wallet_id=str(wallet.get("id", "")),
            wallet_number=str(wallet.get("wallet_number", "")),
            balance=Decimal(str(wallet.get("balance") or "0")),
            currency_code=currency.get("code") if isinstance(currency, dict) else None,
        )


class VerificationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    counterparty_name: str = Field(
        description="Display name of the verified counterparty.", examples=["Jane Doe"]
    )
    counterparty_meta: Dict[str, str] = Field(
        default_factory=dict,
        description="Provider specific display attributes, normalized to strings.",
        examples=[{"bank_code": "058", "session_id": "sess_01"}],
    )
    raw: Dict[str, Any] = Field(
        default_factory=dict,
        description="Opaque provider payload kept for the receipt boundary.",
    )


class Quote(BaseModel):
    model_config = ConfigDict(frozen=True)

    currency_code: str = Field(description="Quote currency code.", examples=["NGN"])
    currency_symbol: str = Field(description="Quote currency symbol.", examples=["₦"])
    amount_processable: Decimal = Field(
        description="Amount the server will move.", examples=["2000.00"]
    )
    platform_fee: Decimal = Field(description="Server-computed fee.", examples=["10.00"])
    total_processable: Decimal = Field(
        description="Server-computed total debit.", examples=["2010.00"]
    )
    balance_before: Optional[Decimal] = Field(
        default=None, description="Balance before the transaction.", examples=["10000.00"]
    )
    balance_after_expected: Optional[Decimal] = Field(
        default=None,
        description="Advisory balance after the transaction.",
        examples=["7990.00"],
    )
    details: Dict[str, str] = Field(
        default_factory=dict,
        description="Kind specific advisory extras (interest, rate, maturity amount).",
    )

    @model_validator(mode="after")
    def validate_total(self) -> "Quote":
        if self.total_processable != self.amount_processable + self.platform_fee:
            raise ValueError("QUOTE_INCONSISTENT")
        return self


class TransactionSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["SUCCESS"] = "SUCCESS"
    reference: Optional[str] = Field(
        default=None, description="Server transaction reference.", examples=["TRX-0001"]
    )
    instrument_code: Optional[str] = Field(
        default=None,
        description="Instrument code or token issued by the provider.",
        examples=["NIP-1234"],
    )
    amount_charged: Optional[Decimal] = Field(
        default=None, description="Amount debited.", examples=["2000.00"]
    )
    fee: Optional[Decimal] = Field(default=None, description="Fee debited.", examples=["10.00"])
    balance_after: Optional[Decimal] = Field(
        default=None,
        description="Server-confirmed balance after commit; absent when not reported.",
        examples=["7990.00"],
    )
    message: str = Field(default="", description="Server message for the receipt.")
    details: Dict[str, str] = Field(default_factory=dict)


class TransactionFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["FAILURE"] = "FAILURE"
    reason: str = Field(description="Machine readable failure reason.", examples=["invalid_pin"])
    message: str = Field(description="User facing failure message.", examples=["Invalid PIN"])


TransactionOutcome = Annotated[
    Union[TransactionSuccess, TransactionFailure], Field(discriminator="status")
]


class FlowErrorRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: FlowErrorCategory
    reason: str = Field(description="Upper snake reason code.", examples=["EXCEEDS_BALANCE"])
    message: str = Field(default="")


class FlowState(BaseModel):
    flow_id: str = Field(description="Flow identifier.", examples=["fl_1a2b3c4d5e6f"])
    kind: TransactionKind
    current_step: StepID = StepID.SELECTION
    status: FlowStatus = "ACTIVE"
    selection: Dict[str, str] = Field(default_factory=dict)
    amount: Optional[str] = Field(
        default=None,
        description="Validated amount as a two-decimal string.",
        examples=["2000.00"],
    )
    description: str = ""
    verification_result: Optional[VerificationResult] = None
    quote: Optional[Quote] = None
    pin_attempts: int = 0
    outcome: Optional[TransactionOutcome] = None
    last_error: Optional[FlowErrorRecord] = None
    pending: bool = False

    @property
    def is_active(self) -> bool:
        return self.status == "ACTIVE"


class TransactionRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: TransactionKind
    selection: Dict[str, str] = Field(default_factory=dict)
    amount: Decimal
    description: str = ""
    source_wallet_id: Optional[str] = None
    source_wallet_number: Optional[str] = None


class AdvanceResult(BaseModel):
    accepted: bool = Field(
        description="False when the call was rejected without running (flow busy or closed)."
    )
    rejection: Optional[Literal["FLOW_BUSY", "FLOW_CLOSED"]] = None
    discarded: bool = Field(
        default=False,
        description="True when a gateway response arrived after the flow moved on or ended.",
    )
    from_step: StepID
    to_step: StepID
    error: Optional[FlowErrorRecord] = None
    state: FlowState
