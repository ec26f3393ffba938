from decimal import Decimal

import pytest

from src.core.flows import (
    STEP_PLANS,
    FlowValidationError,
    StepID,
    StepPlan,
    StepPlanDefinitionError,
    StepRule,
    TransactionKind,
)
from src.core.flows.models import CANONICAL_STEP_ORDER
from src.core.flows.plans import exact_digits, min_length, non_empty, plan_for


def test_every_kind_has_a_plan():
    assert set(STEP_PLANS) == set(TransactionKind)


@pytest.mark.parametrize("kind", list(TransactionKind))
def test_plans_follow_canonical_order(kind):
    steps = plan_for(kind).steps
    positions = [CANONICAL_STEP_ORDER.index(step) for step in steps]

    assert steps[0] == StepID.SELECTION
    assert steps[-2:] == (StepID.AUTHORIZATION, StepID.RESULT)
    assert positions == sorted(set(positions))


def test_plan_table_matches_kind_capabilities():
    assert STEP_PLANS[TransactionKind.BANK_TRANSFER].steps == tuple(CANONICAL_STEP_ORDER)
    assert not STEP_PLANS[TransactionKind.WALLET_TRANSFER].requires_quote
    assert STEP_PLANS[TransactionKind.WALLET_TRANSFER].requires_verification
    assert STEP_PLANS[TransactionKind.AIRTIME_PURCHASE].steps == (
        StepID.SELECTION,
        StepID.AMOUNT_ENTRY,
        StepID.AUTHORIZATION,
        StepID.RESULT,
    )
    assert STEP_PLANS[TransactionKind.FIXED_DEPOSIT_INVESTMENT].requires_quote
    assert STEP_PLANS[TransactionKind.AIRTIME_PURCHASE].min_amount == Decimal("50")
    assert STEP_PLANS[TransactionKind.ELECTRICITY_PURCHASE].min_amount == Decimal("100")


@pytest.mark.parametrize(
    "steps",
    [
        (StepID.VERIFICATION, StepID.AUTHORIZATION, StepID.RESULT),
        (StepID.SELECTION, StepID.AMOUNT_ENTRY, StepID.RESULT),
        (StepID.SELECTION, StepID.QUOTE, StepID.AMOUNT_ENTRY, StepID.AUTHORIZATION, StepID.RESULT),
        (StepID.SELECTION, StepID.SELECTION, StepID.AUTHORIZATION, StepID.RESULT),
        (),
    ],
)
def test_malformed_plans_are_rejected_at_definition(steps):
    with pytest.raises(StepPlanDefinitionError):
        StepPlan(kind=TransactionKind.AIRTIME_PURCHASE, steps=steps)


def test_rules_for_steps_outside_the_plan_are_rejected():
    with pytest.raises(StepPlanDefinitionError, match="rules for steps not in plan"):
        StepPlan(
            kind=TransactionKind.AIRTIME_PURCHASE,
            steps=(StepID.SELECTION, StepID.AUTHORIZATION, StepID.RESULT),
            rules={StepID.VERIFICATION: StepRule(required={"x": non_empty})},
        )


def test_next_and_previous_step_walk_the_plan():
    plan = plan_for(TransactionKind.WALLET_TRANSFER)

    assert plan.next_step(StepID.VERIFICATION) == StepID.AMOUNT_ENTRY
    assert plan.next_step(StepID.AMOUNT_ENTRY) == StepID.AUTHORIZATION
    assert plan.previous_step(StepID.AUTHORIZATION) == StepID.AMOUNT_ENTRY
    assert plan.previous_step(StepID.SELECTION) is None
    with pytest.raises(StepPlanDefinitionError):
        plan.next_step(StepID.RESULT)


def test_field_checks():
    assert exact_digits(10)("0123456789")
    assert not exact_digits(10)("012345678")
    assert not exact_digits(4)("١٢٣٤")
    assert min_length(8)("12345678")
    assert not min_length(8)("1234567")
    assert not non_empty("   ")


def test_step_rule_extract_reports_missing_and_invalid_fields():
    rule = STEP_PLANS[TransactionKind.BANK_TRANSFER].rule_for(StepID.VERIFICATION)

    with pytest.raises(FlowValidationError, match="ACCOUNT_NUMBER_REQUIRED"):
        rule.extract({})
    with pytest.raises(FlowValidationError, match="ACCOUNT_NUMBER_INVALID"):
        rule.extract({"account_number": "12345"})
    assert rule.extract({"account_number": " 0123456789 "}) == {"account_number": "0123456789"}


def test_swap_requires_nip_destination_details():
    plan = plan_for(TransactionKind.CURRENCY_SWAP)
    rule = plan.rule_for(StepID.AMOUNT_ENTRY)

    with pytest.raises(FlowValidationError, match="NIP_DESTINATION_REQUIRED"):
        rule.extract({}, {"destination_type": "nip"})
    assert rule.extract({}, {"destination_type": "wallet"}) == {}
    captured = rule.extract(
        {"destination_bank_uuid": "bank-1", "destination_account_number": "0123456789"},
        {"destination_type": "NIP"},
    )
    assert captured["destination_bank_uuid"] == "bank-1"


def test_fixed_deposit_limits_come_from_the_selected_product():
    plan = plan_for(TransactionKind.FIXED_DEPOSIT_INVESTMENT)

    assert plan.amount_limits({"product_min_amount": "5000", "product_max_amount": "100000"}) == (
        Decimal("5000"),
        Decimal("100000"),
    )
    assert plan.amount_limits({"product_min_amount": "n/a"}) == (Decimal("0.01"), None)


@pytest.mark.parametrize("raw", ["nan", "NaN", "Infinity", "-Infinity", "sNaN"])
def test_non_finite_product_limits_fall_back_to_plan_defaults(raw):
    plan = plan_for(TransactionKind.FIXED_DEPOSIT_INVESTMENT)

    assert plan.amount_limits({"product_min_amount": raw, "product_max_amount": raw}) == (
        Decimal("0.01"),
        None,
    )
