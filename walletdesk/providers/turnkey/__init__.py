from .client import TurnkeyConfig, TurnkeyProvider
from .stamper import STAMP_HEADER_NAME, ApiKeyStamper, Stamp

__all__ = [
    "TurnkeyConfig",
    "TurnkeyProvider",
    "ApiKeyStamper",
    "Stamp",
    "STAMP_HEADER_NAME",
]
