import logging
from typing import Optional

from src.core.flows.authorization import AuthorizationGate
from src.core.flows.controller import TransactionFlowController
from src.core.flows.errors import ActiveFlowExistsError, FlowNotFoundError
from src.core.flows.gateways import (
    CommitGateway,
    NavigationSink,
    QuoteGateway,
    SessionGateway,
    VerificationGateway,
)
from src.core.flows.models import TransactionKind
from src.core.flows.reconciler import BalanceReconciler

logger = logging.getLogger(__name__)


class FlowEngine:
    """Starts flows for one session and keeps at most one of them active."""

    def __init__(
        self,
        *,
        verification: VerificationGateway,
        quotes: QuoteGateway,
        commits: CommitGateway,
        session: SessionGateway,
        navigation: NavigationSink,
    ) -> None:
        self._verification = verification
        self._quotes = quotes
        self._authorization = AuthorizationGate(commit_gateway=commits)
        self._session = session
        self._navigation = navigation
        self._reconciler = BalanceReconciler(session=session)
        self._controllers: dict[str, TransactionFlowController] = {}

    @property
    def session(self) -> SessionGateway:
        return self._session

    def start_flow(self, kind: TransactionKind) -> TransactionFlowController:
        active = self.active_flow()
        if active is not None:
            raise ActiveFlowExistsError("ACTIVE_FLOW_EXISTS")
        controller = TransactionFlowController.start(
            kind,
            verification=self._verification,
            quotes=self._quotes,
            authorization=self._authorization,
            reconciler=self._reconciler,
            session=self._session,
            navigation=self._navigation,
        )
        self._controllers = {controller.flow_id: controller}
        logger.info(
            "flow.started",
            extra={"extra_fields": {"flow_id": controller.flow_id, "transaction_kind": kind.value}},
        )
        return controller

    def get_flow(self, flow_id: str) -> TransactionFlowController:
        controller = self._controllers.get(flow_id)
        if controller is None:
            raise FlowNotFoundError("FLOW_NOT_FOUND")
        return controller

    def active_flow(self) -> Optional[TransactionFlowController]:
        for controller in self._controllers.values():
            if controller.is_active:
                return controller
        return None
