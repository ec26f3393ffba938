"""
Generic guided-transaction state machine.

One controller owns one FlowState. Every step's continue action goes through
`advance`, which validates locally, runs at most one gateway call at a time and
either moves to the next step of the plan or records an error on the state.
"""

import logging
import uuid
from typing import Any, Awaitable, Callable, Mapping, Optional

from src.core.flows.amounts import AmountRejection, validate_amount
from src.core.flows.authorization import AuthorizationGate, require_valid_pin
from src.core.flows.errors import (
    FlowValidationError,
    GatewayNetworkError,
    InsufficientFundsError,
    SessionExpiredError,
    TransactionFlowError,
)
from src.core.flows.gateways import (
    NavigationSink,
    QuoteGateway,
    SessionGateway,
    VerificationGateway,
)
from src.core.flows.models import (
    CANONICAL_STEP_ORDER,
    AdvanceResult,
    FlowErrorRecord,
    FlowState,
    StepID,
    TransactionFailure,
    TransactionKind,
    TransactionRequest,
    TransactionSuccess,
)
from src.core.flows.plans import StepPlan, plan_for
from src.core.flows.reconciler import BalanceReconciler

logger = logging.getLogger(__name__)

# Commit failures after which the displayed quote no longer matches what the
# server would charge.
QUOTE_INVALIDATING_REASONS = frozenset({"insufficient_funds", "amount_mismatch", "quote_expired"})

Applier = Callable[[Any], None]
GatewayCall = Callable[[], Awaitable[Any]]


def new_flow_id() -> str:
    return f"fl_{uuid.uuid4().hex[:12]}"


def _canonical_index(step: StepID) -> int:
    return CANONICAL_STEP_ORDER.index(step)


class TransactionFlowController:
    def __init__(
        self,
        *,
        state: FlowState,
        plan: StepPlan,
        verification: VerificationGateway,
        quotes: QuoteGateway,
        authorization: AuthorizationGate,
        reconciler: BalanceReconciler,
        session: SessionGateway,
        navigation: NavigationSink,
    ) -> None:
        if state.kind != plan.kind:
            raise ValueError("FLOW_PLAN_KIND_MISMATCH")
        self._state = state
        self._plan = plan
        self._verification = verification
        self._quotes = quotes
        self._authorization = authorization
        self._reconciler = reconciler
        self._session = session
        self._navigation = navigation
        self._generation = 0

    @classmethod
    def start(
        cls,
        kind: TransactionKind,
        *,
        verification: VerificationGateway,
        quotes: QuoteGateway,
        authorization: AuthorizationGate,
        reconciler: BalanceReconciler,
        session: SessionGateway,
        navigation: NavigationSink,
        flow_id: Optional[str] = None,
    ) -> "TransactionFlowController":
        return cls(
            state=FlowState(flow_id=flow_id or new_flow_id(), kind=kind),
            plan=plan_for(kind),
            verification=verification,
            quotes=quotes,
            authorization=authorization,
            reconciler=reconciler,
            session=session,
            navigation=navigation,
        )

    @property
    def flow_id(self) -> str:
        return self._state.flow_id

    @property
    def plan(self) -> StepPlan:
        return self._plan

    @property
    def is_active(self) -> bool:
        return self._state.is_active

    def snapshot(self) -> FlowState:
        return self._state.model_copy(deep=True)

    def primary_action_enabled(self, payload: Optional[Mapping[str, Any]] = None) -> bool:
        state = self._state
        if not state.is_active or state.pending or state.current_step == StepID.RESULT:
            return False
        try:
            self._prepare(state.current_step, payload or {})
        except TransactionFlowError:
            return False
        return True

    async def advance(self, payload: Optional[Mapping[str, Any]] = None) -> AdvanceResult:
        state = self._state
        step = state.current_step
        if not state.is_active or step == StepID.RESULT:
            return self._rejected("FLOW_CLOSED")
        if state.pending:
            return self._rejected("FLOW_BUSY")

        try:
            call, apply = self._prepare(step, payload or {})
        except TransactionFlowError as exc:
            return self._fail(step, exc)

        if call is None:
            apply(None)
            return self._moved(step)

        generation = self._generation
        state.pending = True
        failure: Optional[TransactionFlowError] = None
        try:
            response = await call()
        except TransactionFlowError as exc:
            failure = exc
        except Exception as exc:
            failure = self._unreadable_response(step, exc)
        finally:
            state.pending = False

        if isinstance(failure, SessionExpiredError):
            return self._expire_session(step, failure, generation)
        if generation != self._generation:
            return self._discarded(step)
        if failure is not None:
            return self._fail(step, failure)
        apply(response)
        if state.current_step == step and state.is_active:
            # Commit rejected on AUTHORIZATION; outcome recorded, step kept.
            return self._result(step, error=state.last_error)
        return self._moved(step)

    def retreat(self) -> FlowState:
        state = self._state
        if not state.is_active:
            return self.snapshot()
        if state.pending and state.current_step == StepID.AUTHORIZATION:
            # A commit already sent must resolve on this step.
            logger.info(
                "flow.retreat.refused",
                extra={"extra_fields": {"flow_id": state.flow_id, "reason": "COMMIT_IN_FLIGHT"}},
            )
            return self.snapshot()
        previous = self._plan.previous_step(state.current_step)
        if previous is None:
            self.abandon("RETREATED_FROM_SELECTION")
            return self.snapshot()

        self._generation += 1
        if _canonical_index(previous) <= _canonical_index(StepID.QUOTE):
            state.quote = None
        if _canonical_index(previous) <= _canonical_index(StepID.VERIFICATION):
            state.verification_result = None
        state.outcome = None
        state.last_error = None
        state.current_step = previous
        logger.info(
            "flow.step.retreated",
            extra={"extra_fields": {"flow_id": state.flow_id, "to_step": previous.value}},
        )
        return self.snapshot()

    def abandon(self, reason: str = "USER_ABANDONED") -> FlowState:
        state = self._state
        if not state.is_active:
            return self.snapshot()
        self._generation += 1
        state.status = "ABANDONED"
        logger.info(
            "flow.abandoned",
            extra={"extra_fields": {"flow_id": state.flow_id, "reason": reason}},
        )
        self._navigation.flow_abandoned(state.flow_id, reason)
        return self.snapshot()

    def _prepare(
        self, step: StepID, payload: Mapping[str, Any]
    ) -> tuple[Optional[GatewayCall], Applier]:
        if step == StepID.SELECTION:
            return self._prepare_selection(payload)
        if step == StepID.VERIFICATION:
            return self._prepare_verification(payload)
        if step == StepID.AMOUNT_ENTRY:
            return self._prepare_amount(payload)
        if step == StepID.QUOTE:
            return self._prepare_quote()
        if step == StepID.AUTHORIZATION:
            return self._prepare_authorization(payload)
        raise FlowValidationError("STEP_NOT_ADVANCEABLE")

    def _prepare_selection(self, payload: Mapping[str, Any]):
        captured = self._plan.rule_for(StepID.SELECTION).extract(payload)

        def apply(_response: Any) -> None:
            self._state.selection.update(captured)
            self._move_next()

        return None, apply

    def _prepare_verification(self, payload: Mapping[str, Any]):
        state = self._state
        captured = self._plan.rule_for(StepID.VERIFICATION).extract(payload, state.selection)
        params = {**state.selection, **captured}

        def call():
            return self._verification.verify(state.kind, params)

        def apply(result: Any) -> None:
            state.selection.update(captured)
            state.verification_result = result
            self._move_next()

        return call, apply

    def _prepare_amount(self, payload: Mapping[str, Any]):
        state = self._state
        plan = self._plan
        if plan.requires_verification and state.verification_result is None:
            raise FlowValidationError("VERIFICATION_REQUIRED")
        captured = plan.rule_for(StepID.AMOUNT_ENTRY).extract(payload, state.selection)
        minimum, maximum = plan.amount_limits(state.selection)
        check = validate_amount(
            str(payload.get("amount") or ""),
            balance=self._session.get_balance(),
            minimum=minimum,
            maximum=maximum,
        )
        if check.rejection == AmountRejection.EXCEEDS_BALANCE:
            raise InsufficientFundsError(
                check.rejection.value, "Amount exceeds available balance"
            )
        if not check.ok:
            raise FlowValidationError(check.rejection.value)
        description = str(payload.get("description") or "").strip()
        if plan.requires_description and not description:
            raise FlowValidationError("DESCRIPTION_REQUIRED", "Please enter a description")

        def apply(_response: Any) -> None:
            state.selection.update(captured)
            state.amount = str(check.value)
            state.description = description
            state.quote = None
            self._move_next()

        return None, apply

    def _prepare_quote(self):
        state = self._state
        request = self._build_request()

        def call():
            return self._quotes.initiate(request)

        def apply(quote: Any) -> None:
            state.quote = quote
            self._move_next()

        return call, apply

    def _prepare_authorization(self, payload: Mapping[str, Any]):
        state = self._state
        if self._plan.requires_quote and state.quote is None:
            raise FlowValidationError("QUOTE_REQUIRED", "Please request a fresh quote")
        pin = payload.get("pin")
        require_valid_pin(pin)
        request = self._build_request()

        def call():
            state.pin_attempts += 1
            return self._authorization.authorize(request, pin)

        def apply(outcome: Any) -> None:
            state.outcome = outcome
            if isinstance(outcome, TransactionSuccess):
                self._complete(outcome)
                return
            self._record_commit_failure(outcome)

        return call, apply

    def _build_request(self) -> TransactionRequest:
        state = self._state
        if state.amount is None:
            raise FlowValidationError("AMOUNT_REQUIRED")
        wallet = self._session.primary_wallet()
        if self._plan.requires_source_wallet and wallet is None:
            raise FlowValidationError("PRIMARY_WALLET_UNAVAILABLE")
        return TransactionRequest(
            kind=state.kind,
            selection=dict(state.selection),
            amount=state.amount,
            description=state.description,
            source_wallet_id=wallet.wallet_id if wallet else None,
            source_wallet_number=wallet.wallet_number if wallet else None,
        )

    def _move_next(self) -> None:
        self._state.last_error = None
        self._state.current_step = self._plan.next_step(self._state.current_step)

    def _complete(self, outcome: TransactionSuccess) -> None:
        state = self._state
        self._move_next()
        state.status = "COMPLETED"
        self._reconciler.reconcile(outcome)
        self._navigation.flow_completed(state.flow_id, outcome)

    def _record_commit_failure(self, outcome: TransactionFailure) -> None:
        state = self._state
        state.last_error = FlowErrorRecord(
            category="COMMIT_FAILURE", reason=outcome.reason, message=outcome.message
        )
        if outcome.reason in QUOTE_INVALIDATING_REASONS:
            state.quote = None
        logger.info(
            "flow.commit.rejected",
            extra={"extra_fields": {"flow_id": state.flow_id, "reason": outcome.reason}},
        )

    def _unreadable_response(self, step: StepID, exc: Exception) -> TransactionFlowError:
        logger.exception(
            "flow.gateway.unexpected_error",
            extra={"extra_fields": {"flow_id": self._state.flow_id, "step": step.value}},
        )
        if step == StepID.AUTHORIZATION:
            # The commit may have been applied remotely; require a fresh quote first.
            self._state.quote = None
        return GatewayNetworkError(
            "GATEWAY_RESPONSE_UNREADABLE", "The service returned an unexpected response"
        )

    def _expire_session(
        self, step: StepID, exc: SessionExpiredError, generation: int
    ) -> AdvanceResult:
        logger.warning(
            "flow.session.expired",
            extra={"extra_fields": {"flow_id": self._state.flow_id, "step": step.value}},
        )
        self._session.force_logout(exc.reason)
        if generation != self._generation or not self._state.is_active:
            return self._discarded(step)
        self._generation += 1
        self._state.last_error = exc.to_record()
        self._state.status = "SESSION_EXPIRED"
        self._navigation.flow_abandoned(self._state.flow_id, "SESSION_EXPIRED")
        return self._result(step, error=self._state.last_error)

    def _fail(self, step: StepID, exc: TransactionFlowError) -> AdvanceResult:
        record = exc.to_record()
        self._state.last_error = record
        level = logging.DEBUG if record.category == "VALIDATION" else logging.INFO
        logger.log(
            level,
            "flow.step.failed",
            extra={
                "extra_fields": {
                    "flow_id": self._state.flow_id,
                    "step": step.value,
                    "category": record.category,
                    "reason": record.reason,
                }
            },
        )
        return self._result(step, error=record)

    def _moved(self, step: StepID) -> AdvanceResult:
        logger.info(
            "flow.step.advanced",
            extra={
                "extra_fields": {
                    "flow_id": self._state.flow_id,
                    "from_step": step.value,
                    "to_step": self._state.current_step.value,
                }
            },
        )
        return self._result(step)

    def _discarded(self, step: StepID) -> AdvanceResult:
        logger.info(
            "flow.response.discarded",
            extra={"extra_fields": {"flow_id": self._state.flow_id, "step": step.value}},
        )
        return AdvanceResult(
            accepted=True,
            discarded=True,
            from_step=step,
            to_step=self._state.current_step,
            state=self.snapshot(),
        )

    def _rejected(self, rejection: str) -> AdvanceResult:
        return AdvanceResult(
            accepted=False,
            rejection=rejection,
            from_step=self._state.current_step,
            to_step=self._state.current_step,
            state=self.snapshot(),
        )

    def _result(self, step: StepID, error: Optional[FlowErrorRecord] = None) -> AdvanceResult:
        return AdvanceResult(
            accepted=True,
            from_step=step,
            to_step=self._state.current_step,
            error=error,
            state=self.snapshot(),
        )
