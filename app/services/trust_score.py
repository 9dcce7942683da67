"""
Farcaster trust score

A bounded 0-100 reputation score built from independent, capped buckets of
social-profile signals. Pure functions only: no I/O, no state.

Buckets (highest tier met, not cumulative within a bucket):
- followers:          1 -> 5, 10 -> 10, 50 -> 15, 100 -> 20, 500 -> 25, 1000 -> 30
- following:          10 -> 5, 50 -> 7, 100 -> 10
- power badge:        25
- verified addresses: 1 -> 10, 2 -> 15, 3+ -> 20
- avatar:             5
- display name:       5 (only when it differs from the username)
- follower/following ratio within [0.5, 10]: 5 (only when following > 0)

The score is informational. It is shown to the user and exposed over the API
but never decides whether the holder role is granted.
"""

from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

MAX_SCORE = 100

FOLLOWER_TIERS: Sequence[Tuple[int, int]] = (
    (1000, 30),
    (500, 25),
    (100, 20),
    (50, 15),
    (10, 10),
    (1, 5),
)
FOLLOWING_TIERS: Sequence[Tuple[int, int]] = (
    (100, 10),
    (50, 7),
    (10, 5),
)
VERIFIED_ADDRESS_TIERS: Sequence[Tuple[int, int]] = (
    (3, 20),
    (2, 15),
    (1, 10),
)
POWER_BADGE_POINTS = 25
AVATAR_POINTS = 5
DISPLAY_NAME_POINTS = 5
RATIO_POINTS = 5
RATIO_RANGE = (0.5, 10.0)

HIGH_TRUST_MIN = 50
MEDIUM_TRUST_MIN = 25


@dataclass(frozen=True)
class SocialProfile:
    follower_count: int = 0
    following_count: int = 0
    verified_address_count: int = 0
    power_badge: bool = False
    has_avatar: bool = False
    has_display_name: bool = False

    @classmethod
    def from_neynar_user(cls, user: Dict[str, Any]) -> "SocialProfile":
        """Build a profile from a Neynar v2 user object."""
        pfp_url = user.get("pfp_url") or ""
        display_name = user.get("display_name") or ""
        username = user.get("username") or ""
        eth_addresses = (user.get("verified_addresses") or {}).get("eth_addresses") or []
        return cls(
            follower_count=int(user.get("follower_count") or 0),
            following_count=int(user.get("following_count") or 0),
            verified_address_count=len(eth_addresses),
            power_badge=bool(user.get("power_badge")),
            has_avatar=bool(pfp_url) and "default" not in pfp_url,
            has_display_name=bool(display_name) and display_name != username,
        )


def _tier_points(value: int, tiers: Sequence[Tuple[int, int]]) -> int:
    for threshold, points in tiers:
        if value >= threshold:
            return points
    return 0


def calculate_trust_score(profile: SocialProfile) -> int:
    score = 0
    score += _tier_points(profile.follower_count, FOLLOWER_TIERS)
    score += _tier_points(profile.following_count, FOLLOWING_TIERS)
    if profile.power_badge:
        score += POWER_BADGE_POINTS
    score += _tier_points(profile.verified_address_count, VERIFIED_ADDRESS_TIERS)
    if profile.has_avatar:
        score += AVATAR_POINTS
    if profile.has_display_name:
        score += DISPLAY_NAME_POINTS

    if profile.following_count > 0:
        ratio = profile.follower_count / profile.following_count
        low, high = RATIO_RANGE
        if low <= ratio <= high:
            score += RATIO_POINTS

    return max(0, min(score, MAX_SCORE))


def trust_label(score: int) -> str:
    if score >= HIGH_TRUST_MIN:
        return "High Trust"
    if score >= MEDIUM_TRUST_MIN:
        return "Medium Trust"
    return "Low Trust"
