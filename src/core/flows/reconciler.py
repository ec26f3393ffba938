import logging
from collections import deque

from src.core.flows.gateways import SessionGateway
from src.core.flows.models import TransactionOutcome, TransactionSuccess

logger = logging.getLogger(__name__)

APPLIED_REFERENCE_LIMIT = 256


class BalanceReconciler:
    """Single write path from a committed outcome to the session balance."""

    def __init__(
        self, *, session: SessionGateway, reference_limit: int = APPLIED_REFERENCE_LIMIT
    ) -> None:
        self._session = session
        self._applied_references: deque[str] = deque(maxlen=reference_limit)

    def reconcile(self, outcome: TransactionOutcome) -> bool:
        if not isinstance(outcome, TransactionSuccess):
            return False
        if outcome.balance_after is None:
            logger.info(
                "flow.balance.unconfirmed",
                extra={"extra_fields": {"reference": outcome.reference}},
            )
            return False
        if outcome.reference is not None:
            if outcome.reference in self._applied_references:
                return False
            self._applied_references.append(outcome.reference)
        self._session.set_balance(outcome.balance_after)
        logger.info(
            "flow.balance.reconciled",
            extra={"extra_fields": {"reference": outcome.reference}},
        )
        return True
