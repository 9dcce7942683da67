# ERC-721 holdings on the configured EVM chain
import threading
from typing import Any, Optional

from web3 import Web3

from app.core.config import settings
from app.core.errors import BalanceReadError

# ERC-721 balanceOf ABI
ERC721_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    }
]

_contract: Optional[Any] = None
_contract_lock = threading.Lock()


def _get_contract() -> Any:
    global _contract
    if _contract is None:
        with _contract_lock:
            if _contract is None:
                web3 = Web3(
                    Web3.HTTPProvider(
                        settings.CHAIN_RPC_URL,
                        request_kwargs={"timeout": settings.COLLABORATOR_TIMEOUT_SECONDS},
                    )
                )
                _contract = web3.eth.contract(
                    address=Web3.to_checksum_address(settings.NFT_CONTRACT_ADDRESS),
                    abi=ERC721_ABI,
                )
    return _contract


def get_nft_balance(wallet: str) -> int:
    """Return the number of collection tokens held by wallet.

    Raises BalanceReadError on any RPC or decoding failure.
    """
    try:
        balance = _get_contract().functions.balanceOf(Web3.to_checksum_address(wallet)).call()
    except Exception as exc:
        raise BalanceReadError(f"balanceOf failed for {wallet}: {exc}") from exc
    return max(int(balance), 0)
