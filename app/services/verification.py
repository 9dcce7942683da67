"""
Verification flow

start_verification() stores a pending session and returns the Discord authorize
url. complete_verification() runs when Discord redirects back:

    session -> oauth exchange -> guild join -> candidate wallets -> holdings
            -> trust score (display only) -> try_bind -> role granted

Every step that can fail maps to an outcome status instead of raising, so the
callback endpoint only has to render it.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import BindingError, OAuthExchangeError, RoleSyncError, SocialGraphError
from app.services import discord_oauth, neynar
from app.services.binding_registry import try_bind
from app.services.identity import resolve_candidate_wallets
from app.services.ownership import aggregate_holdings
from app.services.pending_sessions import consume_pending_session, create_pending_session
from app.services.trust_score import calculate_trust_score, trust_label

logger = logging.getLogger(__name__)

STATUS_VERIFIED = "verified"
STATUS_NOT_HOLDER = "not_holder"
STATUS_CONFLICT = "conflict"
STATUS_FAILED = "failed"
STATUS_INVALID_SESSION = "invalid_session"

ROLE_FAILED_MESSAGE = "Failed to assign Discord role. Make sure you've joined the server first!"
UNEXPECTED_ERROR_MESSAGE = "An error occurred during verification"


@dataclass
class VerificationOutcome:
    status: str
    message: str = ""
    discord_username: Optional[str] = None
    fid: Optional[int] = None
    balance: int = 0
    primary_wallet: Optional[str] = None
    wallets: List[str] = field(default_factory=list)
    trust_score: Optional[int] = None
    trust_label: Optional[str] = None
    conflicting_username: Optional[str] = None
    # set when the flow stopped on an unexpected error rather than a known outcome
    internal_error: bool = False

    @property
    def verified(self) -> bool:
        return self.status == STATUS_VERIFIED


def start_verification(db: Session, fid: Optional[int], wallet: str) -> str:
    """Persist a pending session and return the url to send the user to."""
    session_id = create_pending_session(db, fid, wallet)
    logger.info("started verification for wallet %s (fid=%s)", wallet, fid)
    return discord_oauth.build_authorize_url(session_id)


def _trust_score(fid: int):
    try:
        profile = neynar.get_social_profile(fid)
    except SocialGraphError as exc:
        logger.warning("could not load social profile for fid %s: %s", fid, exc)
        return None, None
    if profile is None:
        return None, None

    score = calculate_trust_score(profile)
    if settings.TRUST_SCORE_MIN is not None and score < settings.TRUST_SCORE_MIN:
        logger.warning("fid %s has a low trust score (%d)", fid, score)
    return score, trust_label(score)


def _run_verification(db: Session, session_id: str, code: str) -> VerificationOutcome:
    pending = consume_pending_session(db, session_id)
    if pending is None:
        return VerificationOutcome(
            status=STATUS_INVALID_SESSION,
            message="Verification session expired or not found. Please start again.",
        )

    try:
        identity = discord_oauth.exchange_code(code)
    except OAuthExchangeError as exc:
        logger.error("discord oauth failed: %s", exc)
        return VerificationOutcome(
            status=STATUS_FAILED,
            fid=pending.fid,
            message="Discord authorization failed. Please try again.",
        )

    discord_oauth.add_member_to_guild(identity)

    wallets = resolve_candidate_wallets(pending.wallet, pending.fid)
    holdings = aggregate_holdings(wallets)

    if not holdings.is_holder:
        logger.info("%s holds no NFT across %d wallet(s)", identity.username, len(wallets))
        return VerificationOutcome(
            status=STATUS_NOT_HOLDER,
            discord_username=identity.username,
            fid=pending.fid,
            wallets=holdings.wallets,
            message="No NFT found in any of the checked wallets.",
        )

    score, label = (None, None)
    if pending.fid is not None:
        score, label = _trust_score(pending.fid)

    try:
        try_bind(
            db,
            discord_id=identity.id,
            fid=pending.fid,
            primary_wallet=holdings.primary_wallet,
            aggregate_balance=holdings.total,
            display_name=identity.username,
        )
    except BindingError as exc:
        return VerificationOutcome(
            status=STATUS_CONFLICT,
            discord_username=identity.username,
            fid=pending.fid,
            balance=holdings.total,
            wallets=holdings.wallets,
            message=str(exc),
            conflicting_username=exc.existing_username,
        )
    except RoleSyncError as exc:
        logger.error("role grant failed for %s: %s", identity.id, exc)
        return VerificationOutcome(
            status=STATUS_FAILED,
            discord_username=identity.username,
            fid=pending.fid,
            balance=holdings.total,
            wallets=holdings.wallets,
            message=ROLE_FAILED_MESSAGE,
        )

    logger.info("verified %s with %d NFT(s)", identity.username, holdings.total)
    return VerificationOutcome(
        status=STATUS_VERIFIED,
        discord_username=identity.username,
        fid=pending.fid,
        balance=holdings.total,
        primary_wallet=holdings.primary_wallet,
        wallets=holdings.wallets,
        trust_score=score,
        trust_label=label,
        message="Verification successful.",
    )


def complete_verification(db: Session, session_id: Optional[str], code: Optional[str]) -> VerificationOutcome:
    """Run the callback flow. Never raises; unexpected errors become a failed outcome."""
    if not session_id or not code:
        return VerificationOutcome(
            status=STATUS_INVALID_SESSION, message="Missing authorization code or state."
        )

    try:
        return _run_verification(db, session_id, code)
    except Exception as exc:
        logger.exception("verification error for session %s: %s", session_id[:8], exc)
        try:
            db.rollback()
        except SQLAlchemyError as rollback_exc:
            logger.error("rollback after verification error failed: %s", rollback_exc)
        return VerificationOutcome(
            status=STATUS_FAILED, message=UNEXPECTED_ERROR_MESSAGE, internal_error=True
        )
