"""
Binding registry

Owns every read and write of the discord_verifications table and enforces the
linking rules:
- one binding per Discord account (upsert keyed by discord_id)
- one Discord account per Farcaster fid
- one Discord account per wallet

try_bind() checks the rules, grants the holder role and only then persists.
The same rules are unique constraints in the database; a concurrent attempt
that slips past the read check fails on commit and is reported as a conflict.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import BindingError, RoleSyncError, SocialIdentityConflict, WalletConflict
from app.core.validation import normalize_wallet
from app.models.verification import Binding

logger = logging.getLogger(__name__)

RoleAction = Callable[[str], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_binding_by_discord(db: Session, discord_id: str) -> Optional[Binding]:
    return db.query(Binding).filter(Binding.discord_id == discord_id).first()


def get_binding_by_fid(db: Session, fid: int) -> Optional[Binding]:
    return db.query(Binding).filter(Binding.fid == fid).first()


def get_binding_by_wallet(db: Session, wallet: str) -> Optional[Binding]:
    return db.query(Binding).filter(Binding.wallet == normalize_wallet(wallet)).first()


def count_bindings(db: Session) -> int:
    return db.query(Binding).count()


def list_top_holders(db: Session, limit: int = 10) -> List[Binding]:
    return (
        db.query(Binding)
        .order_by(Binding.nft_balance.desc(), Binding.verified_at.asc())
        .limit(limit)
        .all()
    )


def list_stale_bindings(
    db: Session, stale_after_seconds: int, limit: int, now: Optional[datetime] = None
) -> List[Binding]:
    """Bindings not checked within stale_after_seconds, oldest first."""
    cutoff = (now or utc_now()) - timedelta(seconds=stale_after_seconds)
    return (
        db.query(Binding)
        .filter(Binding.last_checked < cutoff)
        .order_by(Binding.last_checked.asc())
        .limit(limit)
        .all()
    )


def update_balance(
    db: Session, binding: Binding, nft_balance: int, now: Optional[datetime] = None
) -> None:
    """Refresh balance and last_checked. The primary wallet is kept as is."""
    binding.nft_balance = nft_balance
    binding.last_checked = now or utc_now()
    db.commit()


def delete_binding(db: Session, discord_id: str) -> bool:
    deleted = db.query(Binding).filter(Binding.discord_id == discord_id).delete(
        synchronize_session=False
    )
    db.commit()
    return deleted > 0


def find_conflict(
    db: Session, discord_id: str, fid: Optional[int], wallet: str
) -> Optional[BindingError]:
    """Return the rule a new binding would break, or None."""
    if fid is not None:
        existing = get_binding_by_fid(db, fid)
        if existing is not None and existing.discord_id != discord_id:
            return SocialIdentityConflict(
                f"This Farcaster account (FID {fid}) is already linked to another "
                f"Discord account ({existing.discord_username}). Each Farcaster "
                "account can only verify one Discord account.",
                existing_discord_id=existing.discord_id,
                existing_username=existing.discord_username,
            )

    existing = get_binding_by_wallet(db, wallet)
    if existing is not None and existing.discord_id != discord_id:
        return WalletConflict(
            f"This wallet is already linked to another Discord account "
            f"({existing.discord_username}). Each wallet can only verify one account.",
            existing_discord_id=existing.discord_id,
            existing_username=existing.discord_username,
        )
    return None


def _revoke_after_lost_race(discord_id: str, revoke_role: Optional[RoleAction]) -> None:
    if revoke_role is None:
        from app.services.discord_roles import revoke_holder_role

        revoke_role = revoke_holder_role
    try:
        revoke_role(discord_id)
    except RoleSyncError as exc:
        logger.error("could not revoke role from %s after failed bind: %s", discord_id, exc)


def try_bind(
    db: Session,
    discord_id: str,
    fid: Optional[int],
    primary_wallet: str,
    aggregate_balance: int,
    display_name: str,
    grant_role: Optional[RoleAction] = None,
    revoke_role: Optional[RoleAction] = None,
    now: Optional[datetime] = None,
) -> Binding:
    """
    Link a Discord account to a holder identity and grant the holder role.

    Raises:
        SocialIdentityConflict: fid is bound to another Discord account
        WalletConflict: primary_wallet is bound to another Discord account
        RoleSyncError: the role could not be granted, nothing is persisted
    """
    if grant_role is None:
        from app.services.discord_roles import grant_holder_role

        grant_role = grant_holder_role

    wallet = normalize_wallet(primary_wallet)
    conflict = find_conflict(db, discord_id, fid, wallet)
    if conflict is not None:
        logger.info("bind rejected for %s: %s", discord_id, type(conflict).__name__)
        raise conflict

    binding = get_binding_by_discord(db, discord_id)
    had_binding = binding is not None

    # the grant is a precondition of persisting, a failure leaves state unchanged
    grant_role(discord_id)

    now = now or utc_now()
    if binding is None:
        binding = Binding(discord_id=discord_id)
        db.add(binding)
    binding.discord_username = display_name
    binding.fid = fid
    binding.wallet = wallet
    binding.nft_balance = aggregate_balance
    binding.verified_at = now
    binding.last_checked = now

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        conflict = find_conflict(db, discord_id, fid, wallet)
        logger.warning("bind for %s lost a race: %s", discord_id, conflict)
        if not had_binding and get_binding_by_discord(db, discord_id) is None:
            _revoke_after_lost_race(discord_id, revoke_role)
        if conflict is not None:
            raise conflict
        raise

    db.refresh(binding)
    logger.info(
        "bound %s to wallet %s (fid=%s, balance=%d)", discord_id, wallet, fid, aggregate_balance
    )
    return binding
