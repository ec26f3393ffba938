import pytest

from src.core.flows import (
    ActiveFlowExistsError,
    FlowNotFoundError,
    TransactionKind,
)


def test_only_one_flow_may_be_active(engine):
    engine.start_flow(TransactionKind.AIRTIME_PURCHASE)

    with pytest.raises(ActiveFlowExistsError, match="ACTIVE_FLOW_EXISTS"):
        engine.start_flow(TransactionKind.BANK_TRANSFER)


def test_new_flow_may_start_after_abandon(engine):
    first = engine.start_flow(TransactionKind.AIRTIME_PURCHASE)
    first.abandon()

    second = engine.start_flow(TransactionKind.BANK_TRANSFER)

    assert engine.active_flow() is second
    assert engine.get_flow(second.flow_id) is second
    with pytest.raises(FlowNotFoundError):
        engine.get_flow(first.flow_id)


def test_terminated_flow_stays_readable_until_next_start(engine):
    controller = engine.start_flow(TransactionKind.AIRTIME_PURCHASE)
    controller.abandon()

    assert engine.active_flow() is None
    assert engine.get_flow(controller.flow_id).snapshot().status == "ABANDONED"


def test_unknown_flow_is_not_found(engine):
    with pytest.raises(FlowNotFoundError, match="FLOW_NOT_FOUND"):
        engine.get_flow("fl_missing")


def test_flow_ids_are_unique(engine):
    first = engine.start_flow(TransactionKind.AIRTIME_PURCHASE)
    first.abandon()
    second = engine.start_flow(TransactionKind.AIRTIME_PURCHASE)

    assert first.flow_id != second.flow_id
    assert second.flow_id.startswith("fl_")
