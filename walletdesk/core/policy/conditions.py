"""
Policy condition builder.

Translates the dashboard's high-level policy requests into the custodial
API's policy triple: an effect, a condition written in the vendor's
expression language, and free-form notes.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from walletdesk.errors import InvalidInputError


SIGN_TRANSACTION = 'activity.type == "ACTIVITY_TYPE_SIGN_TRANSACTION_V2"'

DEFAULT_DAILY_LIMIT_WEI = "1000000000000000000"  # 1 ETH
DEFAULT_MAX_GAS_PRICE_WEI = "100000000000"  # 100 gwei
DEFAULT_START_HOUR = 9
DEFAULT_END_HOUR = 17

CHAIN_BLOCKCHAINS: Dict[str, str] = {
    "ethereum": "BLOCKCHAIN_ETHEREUM",
    "polygon": "BLOCKCHAIN_POLYGON",
    "arbitrum": "BLOCKCHAIN_ARBITRUM",
    "optimism": "BLOCKCHAIN_OPTIMISM",
    "base": "BLOCKCHAIN_BASE",
}
ALL_CHAINS = "all"

EVM_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")
AMOUNT_RE = re.compile(r"[0-9]+")


class PolicyType(str, Enum):
    """Policy templates the dashboard offers."""
    SPENDING_LIMIT = "spending_limit"
    GAS_LIMIT = "gas_limit"
    ADDRESS_ALLOWLIST = "address_allowlist"
    TIME_BASED = "time_based"


class PolicyEffect(str, Enum):
    ALLOW = "EFFECT_ALLOW"
    DENY = "EFFECT_DENY"


@dataclass(frozen=True)
class PolicyDraft:
    """Parameters for a create-policy activity."""
    effect: PolicyEffect
    condition: str
    notes: str

    def to_parameters(self, policy_name: str) -> Dict[str, Any]:
        return {
            "policyName": policy_name,
            "effect": self.effect.value,
            "condition": self.condition,
            "notes": self.notes,
        }


def resolve_blockchain(chain: Optional[str]) -> Optional[str]:
    """Map a chain slug to the vendor blockchain enum; None means every chain."""
    if not chain or chain.lower() == ALL_CHAINS:
        return None
    blockchain = CHAIN_BLOCKCHAINS.get(chain.lower())
    if blockchain is None:
        supported = ", ".join([*CHAIN_BLOCKCHAINS, ALL_CHAINS])
        raise InvalidInputError(f"Unsupported chain '{chain}' (expected one of: {supported})")
    return blockchain


def _numeric(value: Any, default: str, name: str) -> str:
    if value is None or value == "":
        return default
    text = str(value).strip()
    if not AMOUNT_RE.fullmatch(text):
        raise InvalidInputError(f"{name} must be a non-negative integer amount, got {value!r}")
    return text


def _hour(value: Any, default: int, name: str) -> int:
    if value is None or value == "":
        return default
    try:
        hour = int(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{name} must be an hour between 0 and 23, got {value!r}")
    if not 0 <= hour <= 23:
        raise InvalidInputError(f"{name} must be an hour between 0 and 23, got {value!r}")
    return hour


def _join(clauses: List[str]) -> str:
    return " && ".join(clauses)


def build_policy(
    policy_type: str,
    conditions: Dict[str, Any],
    chain: Optional[str] = None,
) -> PolicyDraft:
    """
    Build the effect/condition/notes for a policy template.

    Args:
        policy_type: One of ``PolicyType`` values
        conditions: Template-specific knobs (dailyLimit, maxGasPrice,
            allowedAddresses, startHour/endHour)
        chain: Chain slug to scope the policy to; ``all`` or None for every chain

    Raises:
        InvalidInputError: unknown policy type or chain, malformed knobs
    """
    try:
        kind = PolicyType(policy_type)
    except ValueError:
        supported = ", ".join(t.value for t in PolicyType)
        raise InvalidInputError(f"Unsupported policy type '{policy_type}' (expected one of: {supported})")

    blockchain = resolve_blockchain(chain)
    scope = [SIGN_TRANSACTION]
    if blockchain:
        scope.append(f'activity.parameters.blockchain == "{blockchain}"')

    if kind is PolicyType.SPENDING_LIMIT:
        limit = _numeric(conditions.get("dailyLimit"), DEFAULT_DAILY_LIMIT_WEI, "dailyLimit")
        return PolicyDraft(
            effect=PolicyEffect.DENY,
            condition=_join([*scope, f"activity.parameters.value > {limit}"]),
            notes=f"Automated policy created for {kind.value}",
        )

    if kind is PolicyType.GAS_LIMIT:
        max_gas = _numeric(conditions.get("maxGasPrice"), DEFAULT_MAX_GAS_PRICE_WEI, "maxGasPrice")
        return PolicyDraft(
            effect=PolicyEffect.DENY,
            condition=_join([*scope, f"activity.parameters.gasPrice > {max_gas}"]),
            notes=f"Automated policy created for {kind.value}",
        )

    if kind is PolicyType.ADDRESS_ALLOWLIST:
        addresses = conditions.get("allowedAddresses") or []
        if not isinstance(addresses, list) or not all(isinstance(a, str) for a in addresses):
            raise InvalidInputError("allowedAddresses must be a list of addresses")
        for address in addresses:
            if not EVM_ADDRESS_RE.fullmatch(address):
                raise InvalidInputError(
                    f"allowedAddresses entries must be 0x-prefixed 20-byte hex addresses, got {address!r}"
                )
        clauses = list(scope)
        if addresses:
            checks = " || ".join(
                f'activity.parameters.to == "{address.lower()}"' for address in addresses
            )
            clauses.append(f"!({checks})")
        return PolicyDraft(
            effect=PolicyEffect.DENY,
            condition=_join(clauses),
            notes=f"Automated policy created for {kind.value}",
        )

    # Time windows are not expressible in the vendor language; the window is
    # recorded in the notes and enforced outside the custodial API.
    start = _hour(conditions.get("startHour"), DEFAULT_START_HOUR, "startHour")
    end = _hour(conditions.get("endHour"), DEFAULT_END_HOUR, "endHour")
    return PolicyDraft(
        effect=PolicyEffect.ALLOW,
        condition=_join(scope),
        notes=(
            f"Time-based policy ({start}:00 - {end}:00 UTC). "
            "Note: Time restrictions require external enforcement."
        ),
    )
