import logging
from dataclasses import dataclass
from decimal import Decimal
from threading import Lock
from typing import Any, Callable, Dict, List, Literal, Optional

from src.core.flows.models import PrimaryWallet, TransactionOutcome

logger = logging.getLogger(__name__)


class InMemorySession:
    """Process-local user session: profile, primary wallet and displayed balance."""

    def __init__(
        self,
        *,
        profile: Optional[Dict[str, Any]] = None,
        on_logout: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._lock = Lock()
        self._profile: Dict[str, Any] = {}
        self._wallet: Optional[PrimaryWallet] = None
        self._logout_reason: Optional[str] = None
        self._on_logout = on_logout
        if profile is not None:
            self.load_profile(profile)

    def load_profile(self, profile: Dict[str, Any]) -> Optional[PrimaryWallet]:
        wallet = PrimaryWallet.from_profile(profile)
        with self._lock:
            self._profile = dict(profile)
            self._wallet = wallet
            self._logout_reason = None
        return wallet

    def get_balance(self) -> Decimal:
        with self._lock:
            return self._wallet.balance if self._wallet is not None else Decimal("0")

    def set_balance(self, balance: Decimal) -> None:
        with self._lock:
            if self._wallet is None:
                return
            self._wallet = self._wallet.model_copy(update={"balance": balance})

    def primary_wallet(self) -> Optional[PrimaryWallet]:
        with self._lock:
            return self._wallet

    def profile(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._profile)

    @property
    def logged_out(self) -> bool:
        return self._logout_reason is not None

    @property
    def logout_reason(self) -> Optional[str]:
        return self._logout_reason

    def force_logout(self, reason: str) -> None:
        with self._lock:
            self._logout_reason = reason
            self._profile = {}
            self._wallet = None
        logger.warning("session.logged_out", extra={"extra_fields": {"reason": reason}})
        if self._on_logout is not None:
            self._on_logout(reason)


@dataclass(frozen=True)
class NavigationEvent:
    event: Literal["FLOW_COMPLETED", "FLOW_ABANDONED"]
    flow_id: str
    reason: Optional[str] = None
    outcome: Optional[TransactionOutcome] = None


class RecordingNavigationSink:
    """Keeps navigation signals so an outer surface can poll them."""

    def __init__(self) -> None:
        self._events: List[NavigationEvent] = []
        self._lock = Lock()

    def flow_completed(self, flow_id: str, outcome: TransactionOutcome) -> None:
        with self._lock:
            self._events.append(
                NavigationEvent(event="FLOW_COMPLETED", flow_id=flow_id, outcome=outcome)
            )

    def flow_abandoned(self, flow_id: str, reason: str) -> None:
        with self._lock:
            self._events.append(
                NavigationEvent(event="FLOW_ABANDONED", flow_id=flow_id, reason=reason)
            )

    def events(self, flow_id: Optional[str] = None) -> List[NavigationEvent]:
        with self._lock:
            return [e for e in self._events if flow_id is None or e.flow_id == flow_id]
