"""
Farcaster social graph lookups through the Neynar v2 API.

One call (`/farcaster/user/bulk`) returns everything the verification flow needs:
the custody address, verified ETH addresses and the profile signals used by the
trust score. Failures raise SocialGraphError; callers decide how to degrade.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from app.core.config import settings
from app.core.errors import SocialGraphError
from app.services.trust_score import SocialProfile

logger = logging.getLogger(__name__)

NEYNAR_BASE_URL = "https://api.neynar.com/v2"


def get_farcaster_user(fid: int) -> Optional[Dict[str, Any]]:
    """Return the raw Neynar user object for a fid, or None when the fid is unknown."""
    try:
        response = requests.get(
            f"{NEYNAR_BASE_URL}/farcaster/user/bulk",
            params={"fids": fid},
            headers={"accept": "application/json", "x-api-key": settings.NEYNAR_API_KEY},
            timeout=settings.COLLABORATOR_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        raise SocialGraphError(f"neynar request failed for fid {fid}: {exc}") from exc

    if response.status_code != 200:
        raise SocialGraphError(
            f"neynar returned {response.status_code} for fid {fid}: {response.text[:200]}"
        )

    try:
        body = response.json()
    except ValueError as exc:
        raise SocialGraphError(f"neynar returned invalid json for fid {fid}") from exc

    if not isinstance(body, dict):
        raise SocialGraphError(f"neynar returned an unexpected payload for fid {fid}")
    users = body.get("users") or []
    if not isinstance(users, list):
        raise SocialGraphError(f"neynar returned an unexpected payload for fid {fid}")
    if not users:
        return None
    if not isinstance(users[0], dict):
        raise SocialGraphError(f"neynar returned an unexpected user entry for fid {fid}")
    return users[0]


def verified_eth_addresses(user: Dict[str, Any]) -> List[Any]:
    verified = user.get("verified_addresses")
    if not isinstance(verified, dict):
        return []
    addresses = verified.get("eth_addresses")
    return addresses if isinstance(addresses, list) else []


def extract_wallets(user: Dict[str, Any]) -> List[str]:
    """Custody address first, then verified ETH addresses; lowercase, no duplicates."""
    wallets: List[str] = []
    for address in [user.get("custody_address"), *verified_eth_addresses(user)]:
        # malformed entries (null, numbers) are skipped
        if not isinstance(address, str) or not address:
            continue
        normalized = address.lower()
        if normalized not in wallets:
            wallets.append(normalized)
    return wallets


def get_farcaster_wallets(fid: int) -> List[str]:
    user = get_farcaster_user(fid)
    if user is None:
        return []
    return extract_wallets(user)


def get_social_profile(fid: int) -> Optional[SocialProfile]:
    user = get_farcaster_user(fid)
    if user is None:
        return None
    try:
        return SocialProfile.from_neynar_user(user)
    except (TypeError, ValueError, AttributeError) as exc:
        raise SocialGraphError(f"neynar returned an unexpected profile for fid {fid}: {exc}") from exc
