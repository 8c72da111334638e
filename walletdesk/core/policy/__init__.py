"""
Policy Module

Builds custodial-API policies from the dashboard's policy templates.
"""

from .conditions import (
    CHAIN_BLOCKCHAINS,
    PolicyDraft,
    PolicyEffect,
    PolicyType,
    build_policy,
    resolve_blockchain,
)

__all__ = [
    "CHAIN_BLOCKCHAINS",
    "PolicyDraft",
    "PolicyEffect",
    "PolicyType",
    "build_policy",
    "resolve_blockchain",
]
