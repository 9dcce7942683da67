from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from app.db.base import Base


class Binding(Base):
    """Model for discord_verifications table, one row per verified Discord account

    Uniqueness of discord_id, fid and wallet is enforced by the database so two
    concurrent verifications cannot both claim the same wallet or Farcaster account.
    A NULL fid means the binding has no social identity; NULLs never collide.
    Example:
    {
        "id": 1,
        "discord_id": "123456789012345678",
        "discord_username": "holder",
        "fid": 42,
        "wallet": "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa",
        "nft_balance": 2,
        "verified_at": "2024-01-01T12:00:00",
        "last_checked": "2024-01-01T12:00:00"
    }
    """

    __tablename__ = "discord_verifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    discord_id = Column(String(32), nullable=False, unique=True)
    discord_username = Column(Text, nullable=False)
    fid = Column(Integer, nullable=True, unique=True)
    wallet = Column(String(42), nullable=False, unique=True)
    nft_balance = Column(Integer, nullable=False, default=0)
    verified_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    last_checked = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )


class PendingSession(Base):
    """Model for discord_pending_verifications table, bridges the OAuth redirect
    Example:
    {
        "session_id": "9f86d081884c7d659a2feaa0c55ad015...",
        "fid": null,
        "wallet": "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa",
        "created_at": "2024-01-01T12:00:00"
    }
    """

    __tablename__ = "discord_pending_verifications"

    session_id = Column(String(128), primary_key=True)
    fid = Column(Integer, nullable=True)
    wallet = Column(String(42), nullable=False)
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
