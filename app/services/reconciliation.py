"""
Periodic re-verification of existing bindings.

Each run takes the stalest bindings (not checked for STALE_AFTER_SECONDS, oldest
first, at most RECONCILE_BATCH_SIZE), re-resolves their wallets and re-reads
balances:
- total 0: revoke the holder role, then delete the binding
- otherwise: update nft_balance and last_checked, keep the primary wallet

A failure on one binding is logged and the run moves on; the binding stays
stale and is picked up again by the next run.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.services import binding_registry
from app.services.binding_registry import RoleAction
from app.services.identity import WalletLookup, resolve_candidate_wallets
from app.services.ownership import BalanceReader, aggregate_holdings

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    checked: int = 0
    updated: int = 0
    revoked: int = 0
    failed: List[str] = field(default_factory=list)


def reconcile_stale_bindings(
    db: Session,
    now: Optional[datetime] = None,
    fetch_wallets: Optional[WalletLookup] = None,
    read_balance: Optional[BalanceReader] = None,
    revoke_role: Optional[RoleAction] = None,
    stale_after_seconds: Optional[int] = None,
    batch_size: Optional[int] = None,
) -> ReconcileReport:
    if revoke_role is None:
        from app.services.discord_roles import revoke_holder_role

        revoke_role = revoke_holder_role

    if stale_after_seconds is None:
        stale_after_seconds = settings.STALE_AFTER_SECONDS
    if batch_size is None:
        batch_size = settings.RECONCILE_BATCH_SIZE
    now = now or binding_registry.utc_now()

    report = ReconcileReport()
    stale = binding_registry.list_stale_bindings(db, stale_after_seconds, batch_size, now=now)
    logger.info("Starting periodic re-verification of %d holder(s)", len(stale))

    for binding in stale:
        discord_id = binding.discord_id
        report.checked += 1
        try:
            wallets = resolve_candidate_wallets(binding.wallet, binding.fid, fetch_wallets)
            holdings = aggregate_holdings(wallets, read_balance)

            if not holdings.is_holder:
                logger.info("User %s no longer holds NFT, removing role", discord_id)
                revoke_role(discord_id)
                binding_registry.delete_binding(db, discord_id)
                report.revoked += 1
            else:
                binding_registry.update_balance(db, binding, holdings.total, now=now)
                report.updated += 1
        except Exception as exc:
            db.rollback()
            logger.error("Error re-verifying %s: %s", discord_id, exc)
            report.failed.append(discord_id)

    logger.info(
        "Re-verification complete. checked=%d updated=%d revoked=%d failed=%d",
        report.checked,
        report.updated,
        report.revoked,
        len(report.failed),
    )
    return report
