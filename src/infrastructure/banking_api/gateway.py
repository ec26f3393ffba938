import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from src.core.flows.errors import (
    InsufficientFundsError,
    QuoteRejectedError,
    VerificationFailureError,
)
from src.core.flows.models import (
    Quote,
    TransactionFailure,
    TransactionKind,
    TransactionOutcome,
    TransactionRequest,
    TransactionSuccess,
    VerificationResult,
)
from src.infrastructure.banking_api.client import BankingApiClient, BankingApiError
from src.infrastructure.banking_api.endpoints import (
    COMMIT_PATHS,
    QUOTE_PATHS,
    VERIFICATION_META_FIELDS,
    VERIFICATION_NAME_FIELDS,
    quote_body,
    transaction_body,
    verify_route,
)

logger = logging.getLogger(__name__)

_SWAP_DETAIL_FIELDS = ("exchange_rate", "destination_amount", "destination_currency_code")
_FIXED_DEPOSIT_DETAIL_FIELDS = ("total_interest", "final_amount_on_maturity")
_OUTCOME_DETAIL_FIELDS = ("token", "purchased_units", "payment_url", "maturity_date")


def classify_commit_failure(message: str) -> str:
    text = message.lower()
    if "insufficient" in text:
        return "insufficient_funds"
    if "pin" in text:
        return "invalid_pin"
    if "expired" in text:
        return "quote_expired"
    if "mismatch" in text:
        return "amount_mismatch"
    return "rejected"


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _string_fields(source: Mapping[str, Any], names: tuple[str, ...]) -> Dict[str, str]:
    return {name: str(source[name]) for name in names if source.get(name) is not None}


class RemoteTransactionGateway:
    """Verification, quote and commit calls against the remote banking API."""

    def __init__(self, client: BankingApiClient) -> None:
        self._client = client

    async def verify(
        self, kind: TransactionKind, params: Mapping[str, str]
    ) -> VerificationResult:
        method, path, body = verify_route(kind, params)
        try:
            response = await self._client.request(method, path, json_body=body)
        except BankingApiError as exc:
            raise VerificationFailureError("COUNTERPARTY_NOT_FOUND", exc.message) from exc
        data = response.get("data") or {}
        name = data.get(VERIFICATION_NAME_FIELDS[kind]) if isinstance(data, dict) else None
        if not name:
            raise VerificationFailureError(
                "COUNTERPARTY_NOT_FOUND", str(response.get("message") or "Verification failed")
            )
        return VerificationResult(
            counterparty_name=str(name),
            counterparty_meta=_string_fields(data, VERIFICATION_META_FIELDS[kind]),
            raw=data,
        )

    async def initiate(self, request: TransactionRequest) -> Quote:
        path = QUOTE_PATHS.get(request.kind)
        if path is None:
            raise QuoteRejectedError("QUOTE_NOT_SUPPORTED")
        try:
            response = await self._client.request("POST", path, json_body=quote_body(request))
        except BankingApiError as exc:
            if "insufficient" in exc.message.lower():
                raise InsufficientFundsError("INSUFFICIENT_FUNDS", exc.message) from exc
            raise QuoteRejectedError("QUOTE_REJECTED", exc.message) from exc
        data = _as_dict(response.get("data"))
        try:
            if request.kind == TransactionKind.FIXED_DEPOSIT_INVESTMENT:
                return _fixed_deposit_quote(data)
            return _transfer_quote(data, request)
        except ValidationError as exc:
            if "QUOTE_INCONSISTENT" in str(exc):
                raise QuoteRejectedError(
                    "QUOTE_INCONSISTENT", "Quote total does not match amount plus fee"
                ) from exc
            raise QuoteRejectedError("QUOTE_MALFORMED", "Quote response is incomplete") from exc

    async def process(self, request: TransactionRequest, pin: str) -> TransactionOutcome:
        body = {**transaction_body(request), "transaction_pin": pin}
        try:
            response = await self._client.request(
                "POST", COMMIT_PATHS[request.kind], json_body=body
            )
        except BankingApiError as exc:
            reason = classify_commit_failure(exc.message)
            logger.info(
                "banking_api.commit.rejected",
                extra={
                    "extra_fields": {
                        "transaction_kind": request.kind.value,
                        "reason": reason,
                        "status_code": exc.status_code,
                    }
                },
            )
            return TransactionFailure(reason=reason, message=exc.message)
        return _success_outcome(response)


def _transfer_quote(data: Dict[str, Any], request: TransactionRequest) -> Quote:
    return Quote(
        currency_code=data.get("currency_code")
        or request.selection.get("source_currency_code", ""),
        currency_symbol=data.get("currency_symbol") or "",
        amount_processable=data.get("amount_processable"),
        platform_fee=data.get("platform_charge_fee", Decimal("0")),
        total_processable=data.get("total_amount_processable"),
        balance_before=_optional_decimal(data.get("actual_balance_before")),
        balance_after_expected=_optional_decimal(data.get("expected_balance_after")),
        details=_string_fields(data, _SWAP_DETAIL_FIELDS),
    )


def _fixed_deposit_quote(data: Dict[str, Any]) -> Quote:
    summary = _as_dict(data.get("amount_summary"))
    principal = summary.get("principal")
    return Quote(
        currency_code=summary.get("currency_code") or "",
        currency_symbol=summary.get("currency_symbol") or "",
        amount_processable=principal,
        platform_fee=Decimal("0"),
        total_processable=principal,
        details=_string_fields(summary, _FIXED_DEPOSIT_DETAIL_FIELDS),
    )


def _success_outcome(response: Dict[str, Any]) -> TransactionSuccess:
    data = _as_dict(response.get("data"))
    record = _as_dict(data.get("data")) or data
    reference = (
        record.get("reference_number")
        or record.get("reference")
        or record.get("requestId")
        or data.get("requestId")
    )
    balance_after = record.get("user_balance_after", record.get("balance"))
    instrument_code = record.get("instrument_code") or record.get("token")
    return TransactionSuccess(
        reference=str(reference) if reference is not None else None,
        instrument_code=str(instrument_code) if instrument_code is not None else None,
        amount_charged=_optional_decimal(record.get("user_amount")),
        fee=_optional_decimal(record.get("user_charge_amount")),
        balance_after=_optional_decimal(balance_after),
        message=str(response.get("message") or ""),
        details=_string_fields(record, _OUTCOME_DETAIL_FIELDS),
    )
