from decimal import Decimal
from typing import Mapping, Optional, Protocol

from src.core.flows.models import (
    PrimaryWallet,
    Quote,
    TransactionKind,
    TransactionOutcome,
    TransactionRequest,
    VerificationResult,
)


class VerificationGateway(Protocol):
    async def verify(
        self, kind: TransactionKind, params: Mapping[str, str]
    ) -> VerificationResult: ...


class QuoteGateway(Protocol):
    async def initiate(self, request: TransactionRequest) -> Quote: ...


class CommitGateway(Protocol):
    async def process(self, request: TransactionRequest, pin: str) -> TransactionOutcome: ...


class SessionGateway(Protocol):
    def get_balance(self) -> Decimal: ...

    def set_balance(self, balance: Decimal) -> None: ...

    def primary_wallet(self) -> Optional[PrimaryWallet]: ...

    def force_logout(self, reason: str) -> None: ...


class NavigationSink(Protocol):
    def flow_completed(self, flow_id: str, outcome: TransactionOutcome) -> None: ...

    def flow_abandoned(self, flow_id: str, reason: str) -> None: ...
