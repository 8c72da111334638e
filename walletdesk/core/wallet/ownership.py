"""
Wallet ownership index.

Remembers which application user registered (created or claimed) which
custodial wallet, so "my wallets" can be answered without asking the
custodial API who created what. The custodial API only knows the API key's
user; the association to our own users lives here.

The index is in-memory only: it is rebuilt from nothing on every process
start. One lock guards every read and write, so the check-then-insert in
``register`` is atomic across concurrent requests.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OwnershipRecord:
    """Association between a wallet id and the user that registered it."""
    wallet_id: str
    user_id: str
    created_at: datetime
    chains: List[str] = field(default_factory=list)

    @property
    def primary_blockchain(self) -> Optional[str]:
        return self.chains[0] if self.chains else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "walletId": self.wallet_id,
            "userId": self.user_id,
            "createdAt": self.created_at.isoformat(),
            "chains": list(self.chains),
            "primaryBlockchain": self.primary_blockchain,
        }


class OwnershipIndex:
    """
    Append-only wallet -> user registry with first-writer-wins semantics.

    Usage:
        index = OwnershipIndex()
        index.register("wallet-A", "user-1")
        index.register("wallet-A", "user-2")   # no-op, user-1 keeps it
        index.list_wallets_for_user("user-1")  # ["wallet-A"]
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._records: Dict[str, OwnershipRecord] = {}
        self._lock = threading.Lock()

    def register(
        self,
        wallet_id: str,
        user_id: str,
        chains: Optional[Iterable[str]] = None,
    ) -> bool:
        """
        Record ``user_id`` as the owner of ``wallet_id`` unless already owned.

        Returns:
            True if a new record was inserted, False if the wallet was
            already registered (to anyone).
        """
        with self._lock:
            existing = self._records.get(wallet_id)
            if existing is not None:
                if existing.user_id != user_id:
                    logger.info(
                        "Wallet %s already registered to %s; ignoring claim by %s",
                        wallet_id, existing.user_id, user_id,
                    )
                return False

            self._records[wallet_id] = OwnershipRecord(
                wallet_id=wallet_id,
                user_id=user_id,
                created_at=self._clock(),
                chains=list(chains or []),
            )
            total = len(self._records)

        logger.info("Registered wallet %s -> %s (%d total)", wallet_id, user_id, total)
        return True

    def register_many(self, user_id: str, wallet_ids: Iterable[str]) -> int:
        """Register each wallet in order for one user. Returns how many were new."""
        return sum(1 for wallet_id in wallet_ids if self.register(wallet_id, user_id))

    def list_wallets_for_user(self, user_id: str) -> List[str]:
        with self._lock:
            return [r.wallet_id for r in self._records.values() if r.user_id == user_id]

    def list_all(self) -> List[OwnershipRecord]:
        with self._lock:
            return list(self._records.values())

    def get(self, wallet_id: str) -> Optional[OwnershipRecord]:
        with self._lock:
            return self._records.get(wallet_id)

    def owner_of(self, wallet_id: str) -> Optional[str]:
        record = self.get(wallet_id)
        return record.user_id if record else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, wallet_id: object) -> bool:
        with self._lock:
            return wallet_id in self._records
