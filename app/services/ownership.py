"""
Aggregate NFT holdings across candidate wallets.

Every wallet is read once, in order. The total is the sum over all wallets and
the primary wallet is the first wallet (in candidate order) with a positive
balance. A failed read counts as 0 for that wallet and is not retried.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from app.core.errors import CollaboratorError

logger = logging.getLogger(__name__)

BalanceReader = Callable[[str], int]


@dataclass(frozen=True)
class WalletBalance:
    wallet: str
    balance: int
    error: Optional[str] = None


@dataclass(frozen=True)
class Holdings:
    total: int = 0
    primary_wallet: Optional[str] = None
    balances: List[WalletBalance] = field(default_factory=list)

    @property
    def is_holder(self) -> bool:
        return self.total > 0

    @property
    def wallets(self) -> List[str]:
        return [b.wallet for b in self.balances]


def _read_one(wallet: str, read_balance: BalanceReader) -> WalletBalance:
    try:
        balance = int(read_balance(wallet))
    except CollaboratorError as exc:
        logger.warning("balance read failed for %s, counting 0: %s", wallet, exc)
        return WalletBalance(wallet=wallet, balance=0, error=str(exc))
    return WalletBalance(wallet=wallet, balance=max(balance, 0))


def aggregate_holdings(
    wallets: Sequence[str],
    read_balance: Optional[BalanceReader] = None,
    max_workers: int = 1,
) -> Holdings:
    """Read every wallet's balance and sum them.

    With max_workers > 1 the reads run on a thread pool; results keep the
    input order so the primary wallet selection does not depend on timing.
    """
    if read_balance is None:
        from app.services.onchain import get_nft_balance

        read_balance = get_nft_balance

    if max_workers > 1 and len(wallets) > 1:
        with ThreadPoolExecutor(max_workers=min(max_workers, len(wallets))) as pool:
            # map() yields in submission order
            balances = list(pool.map(lambda w: _read_one(w, read_balance), wallets))
    else:
        balances = [_read_one(w, read_balance) for w in wallets]

    total = 0
    primary_wallet: Optional[str] = None
    for item in balances:
        if item.balance > 0:
            total += item.balance
            if primary_wallet is None:
                primary_wallet = item.wallet

    logger.info(
        "holdings across %d wallet(s): total=%d primary=%s",
        len(balances),
        total,
        primary_wallet,
    )
    return Holdings(total=total, primary_wallet=primary_wallet, balances=balances)
