"""
Domain errors for the verification flow.

Collaborator errors are raised by the thin adapters (Discord, Neynar, chain RPC).
Binding errors are raised by the binding registry when a uniqueness rule is hit.
"""

from typing import Optional


class CollaboratorError(Exception):
    """Raised when an external collaborator call fails or times out."""


class OAuthExchangeError(CollaboratorError):
    """Raised when the Discord code exchange or identity lookup fails."""


class RoleSyncError(CollaboratorError):
    """Raised when the holder role cannot be granted or revoked."""


class BalanceReadError(CollaboratorError):
    """Raised when an on-chain balance read fails."""


class SocialGraphError(CollaboratorError):
    """Raised when the Farcaster social graph lookup fails."""


class BindingError(Exception):
    """Base class for binding uniqueness violations."""

    def __init__(self, message: str, existing_discord_id: str, existing_username: Optional[str]):
        super().__init__(message)
        self.existing_discord_id = existing_discord_id
        self.existing_username = existing_username


class SocialIdentityConflict(BindingError):
    """The Farcaster account is already linked to another Discord account."""


class WalletConflict(BindingError):
    """The wallet is already linked to another Discord account."""
