"""
Wallet Module

- OwnershipIndex: which application user registered which custodial wallet
- Presentation helpers for wallet and account payloads
- Signing helpers: message encoding, account lookup, signature shaping

Usage:
    from walletdesk.core.wallet import OwnershipIndex

    index = OwnershipIndex()
    index.register(wallet_id, user_id, chains=["ethereum"])
    index.list_wallets_for_user(user_id)
"""

from .accounts import (
    DEFAULT_ETHEREUM_ACCOUNT,
    blockchain_for_format,
    curve_name,
    enrich_account,
    find_wallet_by_name,
    summarize_wallet,
)
from .ownership import OwnershipIndex, OwnershipRecord
from .signing import (
    build_unsigned_transaction,
    find_account_by_address,
    join_signature,
    message_to_hex,
)

__all__ = [
    "OwnershipIndex",
    "OwnershipRecord",
    "DEFAULT_ETHEREUM_ACCOUNT",
    "blockchain_for_format",
    "curve_name",
    "enrich_account",
    "find_wallet_by_name",
    "summarize_wallet",
    "build_unsigned_transaction",
    "find_account_by_address",
    "join_signature",
    "message_to_hex",
]
