from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Callable, Mapping, Optional

from src.core.flows.errors import FlowValidationError, StepPlanDefinitionError
from src.core.flows.models import CANONICAL_STEP_ORDER, StepID, TransactionKind

FieldCheck = Callable[[str], bool]
PayloadCheck = Callable[[Mapping[str, str]], Optional[str]]


def non_empty(value: str) -> bool:
    return bool(value.strip())


def exact_digits(count: int) -> FieldCheck:
    def _check(value: str) -> bool:
        return len(value) == count and value.isascii() and value.isdigit()

    return _check


def min_length(count: int) -> FieldCheck:
    def _check(value: str) -> bool:
        return len(value.strip()) >= count

    return _check


@dataclass(frozen=True)
class StepRule:
    """Fields a step captures into the flow selection, with their shape checks."""

    required: Mapping[str, FieldCheck] = field(default_factory=dict)
    optional: tuple[str, ...] = ()
    payload_check: Optional[PayloadCheck] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "required", MappingProxyType(dict(self.required)))

    def extract(
        self, payload: Mapping[str, object], context: Optional[Mapping[str, str]] = None
    ) -> dict[str, str]:
        captured: dict[str, str] = {}
        for name, check in self.required.items():
            raw = payload.get(name)
            value = "" if raw is None else str(raw).strip()
            if not value:
                raise FlowValidationError(f"{name.upper()}_REQUIRED")
            if not check(value):
                raise FlowValidationError(f"{name.upper()}_INVALID")
            captured[name] = value
        for name in self.optional:
            raw = payload.get(name)
            if raw is not None and str(raw).strip():
                captured[name] = str(raw).strip()
        if self.payload_check is not None:
            reason = self.payload_check({**(context or {}), **captured})
            if reason is not None:
                raise FlowValidationError(reason)
        return captured


_NO_FIELDS = StepRule()


@dataclass(frozen=True)
class StepPlan:
    kind: TransactionKind
    steps: tuple[StepID, ...]
    rules: Mapping[StepID, StepRule] = field(default_factory=dict)
    min_amount: Decimal = Decimal("0.01")
    max_amount: Optional[Decimal] = None
    requires_description: bool = False
    requires_source_wallet: bool = False
    min_amount_field: Optional[str] = None
    max_amount_field: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", MappingProxyType(dict(self.rules)))
        _validate_plan_shape(self)

    def has(self, step: StepID) -> bool:
        return step in self.steps

    def next_step(self, step: StepID) -> StepID:
        index = self.steps.index(step)
        if index == len(self.steps) - 1:
            raise StepPlanDefinitionError(f"NO_STEP_AFTER_{step.value}")
        return self.steps[index + 1]

    def previous_step(self, step: StepID) -> Optional[StepID]:
        index = self.steps.index(step)
        if index == 0:
            return None
        return self.steps[index - 1]

    def rule_for(self, step: StepID) -> StepRule:
        return self.rules.get(step, _NO_FIELDS)

    def amount_limits(self, selection: Mapping[str, str]) -> tuple[Decimal, Optional[Decimal]]:
        minimum = _decimal_or(selection.get(self.min_amount_field or ""), self.min_amount)
        maximum = _decimal_or(selection.get(self.max_amount_field or ""), self.max_amount)
        return minimum, maximum

    @property
    def requires_quote(self) -> bool:
        return StepID.QUOTE in self.steps

    @property
    def requires_verification(self) -> bool:
        return StepID.VERIFICATION in self.steps


def _decimal_or(value: Optional[str], default: Optional[Decimal]) -> Optional[Decimal]:
    if not value:
        return default
    try:
        parsed = Decimal(value)
    except InvalidOperation:
        return default
    if not parsed.is_finite():
        return default
    return parsed


def _validate_plan_shape(plan: StepPlan) -> None:
    steps = plan.steps
    if not steps or steps[0] != StepID.SELECTION:
        raise StepPlanDefinitionError(f"{plan.kind.value}: plan must start at SELECTION")
    if steps[-2:] != (StepID.AUTHORIZATION, StepID.RESULT):
        raise StepPlanDefinitionError(
            f"{plan.kind.value}: plan must end with AUTHORIZATION, RESULT"
        )
    positions = [CANONICAL_STEP_ORDER.index(step) for step in steps]
    if any(later <= earlier for earlier, later in zip(positions, positions[1:])):
        raise StepPlanDefinitionError(
            f"{plan.kind.value}: steps must be a strict subsequence of the canonical order"
        )
    unknown = set(plan.rules) - set(steps)
    if unknown:
        names = ", ".join(sorted(step.value for step in unknown))
        raise StepPlanDefinitionError(f"{plan.kind.value}: rules for steps not in plan: {names}")


_PHONE_NUMBER = exact_digits(11)


def _swap_destination_check(captured: Mapping[str, str]) -> Optional[str]:
    if captured.get("destination_type", "").lower() != "nip":
        return None
    if not captured.get("destination_bank_uuid") or not captured.get(
        "destination_account_number"
    ):
        return "NIP_DESTINATION_REQUIRED"
    return None


_SEL = StepID.SELECTION
_VER = StepID.VERIFICATION
_AMT = StepID.AMOUNT_ENTRY
_QTE = StepID.QUOTE
_AUTH = StepID.AUTHORIZATION
_RES = StepID.RESULT

STEP_PLANS: Mapping[TransactionKind, StepPlan] = MappingProxyType(
    {
        TransactionKind.BANK_TRANSFER: StepPlan(
            kind=TransactionKind.BANK_TRANSFER,
            steps=(_SEL, _VER, _AMT, _QTE, _AUTH, _RES),
            rules={
                _SEL: StepRule(required={"bank_id": non_empty}, optional=("bank_name",)),
                _VER: StepRule(required={"account_number": exact_digits(10)}),
            },
            requires_description=True,
            requires_source_wallet=True,
        ),
        TransactionKind.WALLET_TRANSFER: StepPlan(
            kind=TransactionKind.WALLET_TRANSFER,
            steps=(_SEL, _VER, _AMT, _AUTH, _RES),
            rules={_VER: StepRule(required={"wallet_number": min_length(8)})},
            requires_description=True,
            requires_source_wallet=True,
        ),
        TransactionKind.CRYPTO_TRANSFER: StepPlan(
            kind=TransactionKind.CRYPTO_TRANSFER,
            steps=(_SEL, _AMT, _QTE, _AUTH, _RES),
            rules={
                _SEL: StepRule(
                    required={
                        "destination_address_network": non_empty,
                        "destination_address_code": non_empty,
                    },
                    optional=("source_wallet_id",),
                ),
            },
            requires_description=True,
            requires_source_wallet=True,
        ),
        TransactionKind.CURRENCY_SWAP: StepPlan(
            kind=TransactionKind.CURRENCY_SWAP,
            steps=(_SEL, _AMT, _QTE, _AUTH, _RES),
            rules={
                _SEL: StepRule(
                    required={
                        "source_currency_code": non_empty,
                        "destination_currency_code": non_empty,
                        "destination_type": non_empty,
                    },
                ),
                _AMT: StepRule(
                    optional=("destination_bank_uuid", "destination_account_number"),
                    payload_check=_swap_destination_check,
                ),
            },
            requires_description=True,
        ),
        TransactionKind.AIRTIME_PURCHASE: StepPlan(
            kind=TransactionKind.AIRTIME_PURCHASE,
            steps=(_SEL, _AMT, _AUTH, _RES),
            rules={
                _SEL: StepRule(
                    required={"network_provider": non_empty, "phone_number": _PHONE_NUMBER}
                ),
            },
            min_amount=Decimal("50"),
        ),
        TransactionKind.DATA_BUNDLE_PURCHASE: StepPlan(
            kind=TransactionKind.DATA_BUNDLE_PURCHASE,
            steps=(_SEL, _AMT, _AUTH, _RES),
            rules={
                _SEL: StepRule(
                    required={
                        "network_provider": non_empty,
                        "data_plan": non_empty,
                        "phone_number": _PHONE_NUMBER,
                    },
                    optional=("data_plan_name",),
                ),
            },
        ),
        TransactionKind.ELECTRICITY_PURCHASE: StepPlan(
            kind=TransactionKind.ELECTRICITY_PURCHASE,
            steps=(_SEL, _VER, _AMT, _AUTH, _RES),
            rules={
                _SEL: StepRule(required={"electricity_disco": non_empty, "meter_type": non_empty}),
                _VER: StepRule(required={"meter_number": min_length(10)}),
            },
            min_amount=Decimal("100"),
        ),
        TransactionKind.CABLE_TV_SUBSCRIPTION: StepPlan(
            kind=TransactionKind.CABLE_TV_SUBSCRIPTION,
            steps=(_SEL, _VER, _AMT, _AUTH, _RES),
            rules={
                _SEL: StepRule(required={"cable_tv_type": non_empty}),
                _VER: StepRule(required={"smart_card_number": min_length(10)}),
                _AMT: StepRule(
                    required={"subscription_plan": non_empty, "phone_number": _PHONE_NUMBER}
                ),
            },
        ),
        TransactionKind.FIXED_DEPOSIT_INVESTMENT: StepPlan(
            kind=TransactionKind.FIXED_DEPOSIT_INVESTMENT,
            steps=(_SEL, _AMT, _QTE, _AUTH, _RES),
            rules={
                _SEL: StepRule(
                    required={"product_id": non_empty, "desired_maturity_tenure": non_empty},
                    optional=(
                        "product_min_amount",
                        "product_max_amount",
                        "preferred_interest_payout_duration",
                        "auto_rollover_on_maturity",
                    ),
                ),
            },
            min_amount_field="product_min_amount",
            max_amount_field="product_max_amount",
        ),
    }
)


def plan_for(kind: TransactionKind) -> StepPlan:
    return STEP_PLANS[kind]
