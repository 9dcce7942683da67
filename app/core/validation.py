"""Input validation for wallet addresses, Discord ids and Farcaster ids."""

import re
from typing import Optional

WALLET_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")
DISCORD_ID_PATTERN = re.compile(r"^\d{17,20}$")


def is_valid_wallet(wallet: Optional[str]) -> bool:
    return bool(wallet) and WALLET_PATTERN.match(wallet.strip()) is not None


def is_valid_discord_id(discord_id: Optional[str]) -> bool:
    return bool(discord_id) and DISCORD_ID_PATTERN.match(discord_id.strip()) is not None


def normalize_wallet(wallet: str) -> str:
    """Canonical form used for storage and comparison."""
    return wallet.strip().lower()


def parse_fid(raw: Optional[str | int]) -> Optional[int]:
    """Map a raw fid to an optional social id.

    Empty, missing and "0" mean no Farcaster account. Anything else must be a
    positive integer, otherwise ValueError is raised.
    """
    if raw is None:
        return None
    if isinstance(raw, int):
        value = raw
    else:
        raw = raw.strip()
        if not raw:
            return None
        try:
            value = int(raw, 10)
        except ValueError:
            raise ValueError(f"invalid fid: {raw!r}")
    if value == 0:
        return None
    if value < 0:
        raise ValueError(f"invalid fid: {value}")
    return value
