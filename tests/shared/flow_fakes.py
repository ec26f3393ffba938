"""
Deterministic in-memory gateway doubles for flow tests.
"""

import asyncio
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from src.core.flows import (
    Quote,
    TransactionKind,
    TransactionOutcome,
    TransactionRequest,
    TransactionSuccess,
    VerificationResult,
)


def make_profile(balance: str = "10000.00", key: str = "getPrimaryWallet") -> Dict[str, Any]:
    return {
        "first_name": "Ada",
        key: {
            "id": "wal_01",
            "wallet_number": "3012345678",
            "balance": balance,
            "currency": {"code": "NGN"},
        },
    }


def make_quote(
    amount: str = "2000.00",
    fee: str = "10.00",
    total: str = "2010.00",
    balance_after: Optional[str] = "7990.00",
) -> Quote:
    return Quote(
        currency_code="NGN",
        currency_symbol="₦",
        amount_processable=Decimal(amount),
        platform_fee=Decimal(fee),
        total_processable=Decimal(total),
        balance_before=Decimal("10000.00"),
        balance_after_expected=Decimal(balance_after) if balance_after else None,
    )


class FakeTransactionGateway:
    """Scripted verify/initiate/process responses that also record every call."""

    def __init__(self) -> None:
        self.verification = VerificationResult(
            counterparty_name="Jane Doe", counterparty_meta={"bank_code": "058"}
        )
        self.quote = make_quote()
        self.outcomes: List[TransactionOutcome] = [
            TransactionSuccess(reference="TRX-0001", balance_after=Decimal("7990.00"))
        ]
        self.verify_error: Optional[Exception] = None
        self.initiate_error: Optional[Exception] = None
        self.process_error: Optional[Exception] = None
        self.verify_calls: List[tuple[TransactionKind, Dict[str, str]]] = []
        self.initiate_calls: List[TransactionRequest] = []
        self.process_calls: List[tuple[TransactionRequest, str]] = []
        self.gate: Optional[asyncio.Event] = None

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()

    async def verify(
        self, kind: TransactionKind, params: Mapping[str, str]
    ) -> VerificationResult:
        self.verify_calls.append((kind, dict(params)))
        await self._wait()
        if self.verify_error is not None:
            raise self.verify_error
        return self.verification

    async def initiate(self, request: TransactionRequest) -> Quote:
        self.initiate_calls.append(request)
        await self._wait()
        if self.initiate_error is not None:
            raise self.initiate_error
        return self.quote

    async def process(self, request: TransactionRequest, pin: str) -> TransactionOutcome:
        self.process_calls.append((request, pin))
        await self._wait()
        if self.process_error is not None:
            raise self.process_error
        if len(self.outcomes) > 1:
            return self.outcomes.pop(0)
        return self.outcomes[0]
