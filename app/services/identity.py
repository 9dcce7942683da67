"""Resolve the candidate wallets to check for a verification attempt."""

import logging
from typing import Callable, List, Optional

from app.core.errors import SocialGraphError
from app.core.validation import normalize_wallet

logger = logging.getLogger(__name__)

WalletLookup = Callable[[int], List[str]]


def resolve_candidate_wallets(
    wallet: str,
    fid: Optional[int],
    fetch_wallets: Optional[WalletLookup] = None,
) -> List[str]:
    """
    Return the submitted wallet followed by every wallet linked to the Farcaster account.

    - order: submitted wallet first, then discovered wallets as returned by the social graph
    - all addresses lowercase, duplicates dropped
    - a failed or empty social graph lookup is not fatal, the result always holds the
      submitted wallet
    """
    if fetch_wallets is None:
        from app.services.neynar import get_farcaster_wallets

        fetch_wallets = get_farcaster_wallets

    candidates = [normalize_wallet(wallet)]
    if fid is None:
        return candidates

    try:
        discovered = fetch_wallets(fid) or []
    except SocialGraphError as exc:
        logger.warning("social graph lookup failed for fid %s: %s", fid, exc)
        discovered = []

    for address in discovered:
        normalized = normalize_wallet(address)
        if normalized and normalized not in candidates:
            candidates.append(normalized)

    logger.info("resolved %d candidate wallet(s) for fid %s", len(candidates), fid)
    return candidates
