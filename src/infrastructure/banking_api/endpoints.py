from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from src.core.flows.models import TransactionKind, TransactionRequest

_K = TransactionKind


def verify_route(
    kind: TransactionKind, params: Mapping[str, str]
) -> tuple[str, str, Optional[Dict[str, Any]]]:
    """Return (method, path, json body) for a counterparty lookup."""
    if kind == _K.BANK_TRANSFER:
        return "GET", f"/verify/bank-account/{params['account_number']}/{params['bank_id']}", None
    if kind == _K.WALLET_TRANSFER:
        return "GET", f"/verify/wallet-number/{params['wallet_number']}", None
    if kind == _K.ELECTRICITY_PURCHASE:
        return (
            "POST",
            "/transactions/verify-meter-number",
            {
                "electricity_disco": params["electricity_disco"],
                "meter_type": params["meter_type"],
                "meter_number": params["meter_number"],
            },
        )
    if kind == _K.CABLE_TV_SUBSCRIPTION:
        return (
            "POST",
            "/transactions/verify-smart-card",
            {
                "cable_tv_type": params["cable_tv_type"],
                "smart_card_number": params["smart_card_number"],
            },
        )
    raise ValueError(f"NO_VERIFICATION_ROUTE_{kind.value}")


VERIFICATION_NAME_FIELDS: Mapping[TransactionKind, str] = MappingProxyType(
    {
        _K.BANK_TRANSFER: "account_name",
        _K.WALLET_TRANSFER: "wallet_name",
        _K.ELECTRICITY_PURCHASE: "meter_name",
        _K.CABLE_TV_SUBSCRIPTION: "customer_name",
    }
)

VERIFICATION_META_FIELDS: Mapping[TransactionKind, tuple[str, ...]] = MappingProxyType(
    {
        _K.BANK_TRANSFER: ("bank_code", "session_id", "request_reference"),
        _K.WALLET_TRANSFER: (
            "wallet_org",
            "wallet_type",
            "wallet_number",
            "currency_code",
            "currency_name",
        ),
        _K.ELECTRICITY_PURCHASE: ("address", "meter_type", "meter_number"),
        _K.CABLE_TV_SUBSCRIPTION: (
            "status",
            "due_date",
            "cable_tv",
            "customer_number",
            "current_bouquet",
            "current_bouquet_code",
            "renewal_amount",
        ),
    }
)

QUOTE_PATHS: Mapping[TransactionKind, str] = MappingProxyType(
    {
        _K.BANK_TRANSFER: "/customers/wallet-to-bank-transaction/initiate",
        _K.CRYPTO_TRANSFER: "/customers/crypto-wallet-transaction/initiate",
        _K.CURRENCY_SWAP: "/customers/currency-swap-transaction/initiate",
        _K.FIXED_DEPOSIT_INVESTMENT: (
            "/fixed-deposit-mgt/fixed-deposit-products/interest/calculator"
        ),
    }
)

COMMIT_PATHS: Mapping[TransactionKind, str] = MappingProxyType(
    {
        _K.BANK_TRANSFER: "/customers/wallet-to-bank-transaction/process",
        _K.WALLET_TRANSFER: "/customers/wallet-to-wallet-transaction/process",
        _K.CRYPTO_TRANSFER: "/customers/crypto-wallet-transaction/process",
        _K.CURRENCY_SWAP: "/customers/currency-swap-transaction/process",
        _K.AIRTIME_PURCHASE: "/transactions/buy-airtime",
        _K.DATA_BUNDLE_PURCHASE: "/transactions/buy-data-bundle",
        _K.ELECTRICITY_PURCHASE: "/transactions/buy-electricity",
        _K.CABLE_TV_SUBSCRIPTION: "/transactions/subscribe-cable-tv",
        _K.FIXED_DEPOSIT_INVESTMENT: "/fixed-deposit-mgt/fixed-deposit-contracts",
    }
)


def _amount(request: TransactionRequest) -> str:
    return f"{request.amount:.2f}"


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes"}


def transaction_body(request: TransactionRequest) -> Dict[str, Any]:
    """Shared initiate/process body for a request, without the PIN.

    Amounts travel as two-decimal strings so no float conversion touches money.
    """
    selection = request.selection
    kind = request.kind
    if kind == _K.BANK_TRANSFER:
        return {
            "source_wallet_number": request.source_wallet_number,
            "destination_account_number": selection["account_number"],
            "bank_id": selection["bank_id"],
            "amount": _amount(request),
            "description": request.description,
        }
    if kind == _K.WALLET_TRANSFER:
        return {
            "source_wallet_number": request.source_wallet_number,
            "destination_wallet_number": selection["wallet_number"],
            "amount": _amount(request),
            "description": request.description,
        }
    if kind == _K.CRYPTO_TRANSFER:
        return {
            "source_wallet_id": selection.get("source_wallet_id") or request.source_wallet_id,
            "destination_address_code": selection["destination_address_code"],
            "destination_address_network": selection["destination_address_network"],
            "amount": _amount(request),
            "description": request.description,
        }
    if kind == _K.CURRENCY_SWAP:
        body: Dict[str, Any] = {
            "source_currency_code": selection["source_currency_code"],
            "source_swap_amount": _amount(request),
            "destination_type": selection["destination_type"],
            "destination_currency_code": selection["destination_currency_code"],
            "description": request.description,
        }
        if selection.get("destination_bank_uuid"):
            body["destination_bank_uuid"] = selection["destination_bank_uuid"]
            body["destination_account_number"] = selection["destination_account_number"]
        return body
    if kind == _K.AIRTIME_PURCHASE:
        return {
            "network_provider": selection["network_provider"],
            "final_amount": _amount(request),
            "phone_number": selection["phone_number"],
        }
    if kind == _K.DATA_BUNDLE_PURCHASE:
        return {
            "network_provider": selection["network_provider"],
            "data_plan": selection["data_plan"],
            "phone_number": selection["phone_number"],
        }
    if kind == _K.ELECTRICITY_PURCHASE:
        return {
            "meter_number": selection["meter_number"],
            "electricity_disco": selection["electricity_disco"],
            "meter_type": selection["meter_type"],
            "final_amount": _amount(request),
        }
    if kind == _K.CABLE_TV_SUBSCRIPTION:
        return {
            "cable_tv_type": selection["cable_tv_type"],
            "smart_card_number": selection["smart_card_number"],
            "subscription_plan": selection["subscription_plan"],
            "phone_number": selection["phone_number"],
        }
    if kind == _K.FIXED_DEPOSIT_INVESTMENT:
        return {
            "product_id": selection["product_id"],
            "deposit_amount": _amount(request),
            "desired_maturity_tenure": selection["desired_maturity_tenure"],
            "preferred_interest_payout_duration": selection.get(
                "preferred_interest_payout_duration", "on_maturity"
            ),
            "auto_rollover_on_maturity": _flag(selection.get("auto_rollover_on_maturity")),
        }
    raise ValueError(f"UNSUPPORTED_TRANSACTION_KIND_{kind.value}")


def quote_body(request: TransactionRequest) -> Dict[str, Any]:
    if request.kind == _K.FIXED_DEPOSIT_INVESTMENT:
        return {
            "deposit_amount": _amount(request),
            "product_id": request.selection["product_id"],
            "desired_maturity_tenure": request.selection["desired_maturity_tenure"],
        }
    return transaction_body(request)
