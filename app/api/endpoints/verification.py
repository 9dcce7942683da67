from enum import Enum
from typing import List

from fastapi import Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from app.core.errors import SocialGraphError
from app.core.router_decorated import APIRouter
from app.core.validation import is_valid_discord_id
from app.db.session import get_db
from app.schemas.verification import (
    LeaderboardEntry,
    LeaderboardResponse,
    StatsResponse,
    TrustScoreResponse,
    VerificationStatus,
)
from app.services import binding_registry, neynar
from app.services.trust_score import calculate_trust_score, trust_label

router = APIRouter()
group_tags: List[str | Enum] = ["Verification"]


def _check_discord_id(discord_id: str) -> str:
    if not is_valid_discord_id(discord_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid Discord ID")
    return discord_id.strip()


@router.get(
    "/verification/{discord_id}",
    tags=group_tags,
    response_model=VerificationStatus,
    status_code=status.HTTP_200_OK,
)
def get_verification(
    discord_id: str = Path(..., description="Discord user id (17-20 digits)"),
    db: Session = Depends(get_db),
) -> VerificationStatus:
    """
    Get the verification state of a Discord account.

    Returns:
    - verified=false when the account has no binding
    - otherwise the binding: fid, wallet, discord_username, nft_balance, verified_at, last_checked
    """
    binding = binding_registry.get_binding_by_discord(db, _check_discord_id(discord_id))
    if binding is None:
        return VerificationStatus(verified=False)
    return VerificationStatus.from_record(binding, verified=True)


@router.get(
    "/verification/{discord_id}/trust",
    tags=group_tags,
    response_model=TrustScoreResponse,
    status_code=status.HTTP_200_OK,
)
def get_trust_score(
    discord_id: str = Path(..., description="Discord user id (17-20 digits)"),
    db: Session = Depends(get_db),
) -> TrustScoreResponse:
    """
    Informational Farcaster trust score (0-100) of a verified account.
    The score never affects the holder role.
    """
    discord_id = _check_discord_id(discord_id)
    binding = binding_registry.get_binding_by_discord(db, discord_id)
    if binding is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Discord account is not verified")
    if binding.fid is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="No Farcaster account linked to this binding"
        )

    try:
        profile = neynar.get_social_profile(binding.fid)
    except SocialGraphError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Farcaster lookup failed: {e}")
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Farcaster account not found")

    score = calculate_trust_score(profile)
    return TrustScoreResponse(discord_id=discord_id, fid=binding.fid, score=score, label=trust_label(score))


@router.get(
    "/stats",
    tags=group_tags,
    response_model=StatsResponse,
    status_code=status.HTTP_200_OK,
)
def get_stats(db: Session = Depends(get_db)) -> StatsResponse:
    """Number of verified holders."""
    return StatsResponse(verified_holders=binding_registry.count_bindings(db))


@router.get(
    "/leaderboard",
    tags=group_tags,
    response_model=LeaderboardResponse,
    status_code=status.HTTP_200_OK,
)
def get_leaderboard(
    limit: int = Query(default=10, ge=1, le=100, description="Number of holders to return, default: 10, max: 100"),
    db: Session = Depends(get_db),
) -> LeaderboardResponse:
    """Top verified holders by aggregate NFT balance, earliest verification first on ties."""
    bindings = binding_registry.list_top_holders(db, limit)
    holders = [
        LeaderboardEntry(
            rank=i + 1,
            discord_id=b.discord_id,
            discord_username=b.discord_username,
            nft_balance=b.nft_balance,
        )
        for i, b in enumerate(bindings)
    ]
    return LeaderboardResponse(holders=holders, total=binding_registry.count_bindings(db))
