import logging

from src.core.flows.errors import FlowValidationError
from src.core.flows.gateways import CommitGateway
from src.core.flows.models import TransactionOutcome, TransactionRequest

logger = logging.getLogger(__name__)

PIN_LENGTH = 4


def is_valid_pin_shape(pin: object) -> bool:
    return (
        isinstance(pin, str)
        and len(pin) == PIN_LENGTH
        and pin.isascii()
        and pin.isdigit()
    )


def require_valid_pin(pin: object) -> None:
    if not is_valid_pin_shape(pin):
        raise FlowValidationError("PIN_INVALID_FORMAT", "Please enter a valid 4-digit PIN")


class AuthorizationGate:
    """Checks the PIN shape locally, then performs the committing process call.

    PIN correctness is decided by the server only. The PIN is passed through to
    a single request and never retained.
    """

    def __init__(self, *, commit_gateway: CommitGateway) -> None:
        self._commit_gateway = commit_gateway

    async def authorize(self, request: TransactionRequest, pin: object) -> TransactionOutcome:
        require_valid_pin(pin)
        outcome = await self._commit_gateway.process(request, str(pin))
        logger.info(
            "flow.authorization.completed",
            extra={
                "extra_fields": {
                    "transaction_kind": request.kind.value,
                    "outcome_status": outcome.status,
                }
            },
        )
        return outcome
