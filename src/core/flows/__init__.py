from src.core.flows.amounts import AmountCheck, AmountRejection, validate_amount
from src.core.flows.authorization import AuthorizationGate
from src.core.flows.controller import TransactionFlowController
from src.core.flows.engine import FlowEngine
from src.core.flows.errors import (
    ActiveFlowExistsError,
    FlowNotFoundError,
    FlowValidationError,
    GatewayNetworkError,
    InsufficientFundsError,
    QuoteRejectedError,
    SessionExpiredError,
    StepPlanDefinitionError,
    TransactionFlowError,
    VerificationFailureError,
)
from src.core.flows.models import (
    AdvanceResult,
    FlowErrorRecord,
    FlowState,
    PrimaryWallet,
    Quote,
    StepID,
    TransactionFailure,
    TransactionKind,
    TransactionOutcome,
    TransactionRequest,
    TransactionSuccess,
    VerificationResult,
)
from src.core.flows.plans import STEP_PLANS, StepPlan, StepRule, plan_for
from src.core.flows.reconciler import BalanceReconciler

__all__ = [
    "ActiveFlowExistsError",
    "AdvanceResult",
    "AmountCheck",
    "AmountRejection",
    "AuthorizationGate",
    "BalanceReconciler",
    "FlowEngine",
    "FlowErrorRecord",
    "FlowNotFoundError",
    "FlowState",
    "FlowValidationError",
    "GatewayNetworkError",
    "InsufficientFundsError",
    "PrimaryWallet",
    "Quote",
    "QuoteRejectedError",
    "STEP_PLANS",
    "SessionExpiredError",
    "StepID",
    "StepPlan",
    "StepPlanDefinitionError",
    "StepRule",
    "TransactionFailure",
    "TransactionFlowController",
    "TransactionFlowError",
    "TransactionKind",
    "TransactionOutcome",
    "TransactionRequest",
    "TransactionSuccess",
    "VerificationFailureError",
    "VerificationResult",
    "plan_for",
    "validate_amount",
]
