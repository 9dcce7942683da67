"""
Pending verification sessions

A session bridges the Discord OAuth redirect: it is created before the user is
sent to Discord and consumed exactly once when Discord redirects back with the
session id as the OAuth state. Sessions expire after PENDING_SESSION_TTL_SECONDS.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.validation import normalize_wallet
from app.models.verification import PendingSession
from app.services.binding_registry import utc_now

logger = logging.getLogger(__name__)

SESSION_ID_NUM_BYTES = 32  # 64 hex characters


@dataclass(frozen=True)
class PendingVerification:
    session_id: str
    fid: Optional[int]
    wallet: str


def create_pending_session(
    db: Session, fid: Optional[int], wallet: str, now: Optional[datetime] = None
) -> str:
    """Store a new pending session and return its id."""
    session_id = secrets.token_hex(SESSION_ID_NUM_BYTES)
    db.add(
        PendingSession(
            session_id=session_id,
            fid=fid,
            wallet=normalize_wallet(wallet),
            created_at=now or utc_now(),
        )
    )
    db.commit()
    return session_id


def consume_pending_session(
    db: Session, session_id: str, now: Optional[datetime] = None
) -> Optional[PendingVerification]:
    """Read then delete a session. Returns None when it is unknown, expired or already used.

    The delete decides ownership: when two callbacks race on one session id only the
    one whose delete removed the row gets the session back.
    """
    cutoff = (now or utc_now()) - timedelta(seconds=settings.PENDING_SESSION_TTL_SECONDS)
    row = (
        db.query(PendingSession)
        .filter(PendingSession.session_id == session_id, PendingSession.created_at >= cutoff)
        .first()
    )
    if row is None:
        return None
    pending = PendingVerification(session_id=row.session_id, fid=row.fid, wallet=row.wallet)

    deleted = (
        db.query(PendingSession)
        .filter(PendingSession.session_id == session_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted != 1:
        logger.info("pending session %s was consumed concurrently", session_id[:8])
        return None
    return pending


def sweep_pending_sessions(db: Session, now: Optional[datetime] = None) -> int:
    """Delete every session older than the TTL. Returns the number removed."""
    cutoff = (now or utc_now()) - timedelta(seconds=settings.PENDING_SESSION_TTL_SECONDS)
    deleted = (
        db.query(PendingSession)
        .filter(PendingSession.created_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("Cleaned up %d old pending verifications", deleted)
    return deleted
