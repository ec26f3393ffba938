from src.core.flows.models import FlowErrorCategory, FlowErrorRecord


class TransactionFlowError(Exception):
    category: FlowErrorCategory = "VALIDATION"

    def __init__(self, reason: str, message: str = "") -> None:
        super().__init__(reason)
        self.reason = reason
        self.message = message or reason

    def to_record(self) -> FlowErrorRecord:
        return FlowErrorRecord(category=self.category, reason=self.reason, message=self.message)


class FlowValidationError(TransactionFlowError):
    category = "VALIDATION"


class VerificationFailureError(TransactionFlowError):
    category = "VERIFICATION_FAILURE"


class InsufficientFundsError(TransactionFlowError):
    category = "INSUFFICIENT_FUNDS"


class GatewayNetworkError(TransactionFlowError):
    category = "NETWORK"


class SessionExpiredError(TransactionFlowError):
    category = "SESSION_EXPIRED"


class QuoteRejectedError(TransactionFlowError):
    category = "QUOTE_REJECTED"


class StepPlanDefinitionError(Exception):
    pass


class FlowNotFoundError(Exception):
    pass


class ActiveFlowExistsError(Exception):
    pass
