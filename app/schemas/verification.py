from datetime import datetime
from typing import List, Optional

from app.schemas.my_base_model import CustomBaseModel


class VerificationStatus(CustomBaseModel):
    """Response model for a Discord account's verification state"""

    verified: bool = False
    fid: Optional[int] = None
    wallet: Optional[str] = None
    discord_username: Optional[str] = None
    nft_balance: Optional[int] = None
    verified_at: Optional[datetime] = None
    last_checked: Optional[datetime] = None


class TrustScoreResponse(CustomBaseModel):
    """Response model for the informational Farcaster trust score"""

    discord_id: str = ""
    fid: Optional[int] = None
    score: int = 0
    label: str = ""


class StatsResponse(CustomBaseModel):
    """Response model for community stats"""

    verified_holders: int = 0


class HealthResponse(CustomBaseModel):
    status: str = "ok"
    service: str = ""
    verified_holders: int = 0


class LeaderboardEntry(CustomBaseModel):
    rank: int = 0
    discord_id: str = ""
    discord_username: str = ""
    nft_balance: int = 0


class LeaderboardResponse(CustomBaseModel):
    holders: List[LeaderboardEntry] = []
    total: int = 0
