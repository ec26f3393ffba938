from src.infrastructure.banking_api.client import BankingApiClient, BankingApiError
from src.infrastructure.banking_api.gateway import RemoteTransactionGateway

__all__ = ["BankingApiClient", "BankingApiError", "RemoteTransactionGateway"]
