"""
Discord OAuth2 helpers

Flow:
1. build_authorize_url(state) -> user is redirected to Discord with the pending session id as state
2. Discord redirects back with ?code=...&state=...
3. exchange_code(code) -> access token -> /users/@me -> DiscordIdentity
4. add_member_to_guild(identity) -> best-effort join of the community server
"""

import logging
from dataclasses import dataclass
from urllib.parse import urlencode

import requests

from app.core.config import settings
from app.core.errors import OAuthExchangeError

logger = logging.getLogger(__name__)

DISCORD_API_BASE = "https://discord.com/api/v10"
DISCORD_AUTHORIZE_URL = "https://discord.com/api/oauth2/authorize"
DISCORD_TOKEN_URL = "https://discord.com/api/oauth2/token"
OAUTH_SCOPES = "identify guilds.join"


@dataclass(frozen=True)
class DiscordIdentity:
    id: str
    username: str
    access_token: str


def build_authorize_url(state: str) -> str:
    params = {
        "client_id": settings.DISCORD_CLIENT_ID,
        "redirect_uri": settings.DISCORD_REDIRECT_URI,
        "response_type": "code",
        "scope": OAUTH_SCOPES,
        "state": state,
    }
    return f"{DISCORD_AUTHORIZE_URL}?{urlencode(params)}"


def exchange_code(code: str) -> DiscordIdentity:
    """Exchange an authorization code for the caller's Discord identity.

    Raises OAuthExchangeError when either the token exchange or the user lookup fails.
    """
    timeout = settings.COLLABORATOR_TIMEOUT_SECONDS
    try:
        token_response = requests.post(
            DISCORD_TOKEN_URL,
            data={
                "client_id": settings.DISCORD_CLIENT_ID,
                "client_secret": settings.DISCORD_CLIENT_SECRET,
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": settings.DISCORD_REDIRECT_URI,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=timeout,
        )
        if token_response.status_code != 200:
            raise OAuthExchangeError(
                f"Failed to exchange code for token: {token_response.status_code}"
            )
        access_token = token_response.json().get("access_token")
        if not access_token:
            raise OAuthExchangeError("token response has no access_token")

        user_response = requests.get(
            f"{DISCORD_API_BASE}/users/@me",
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
        )
        if user_response.status_code != 200:
            raise OAuthExchangeError(
                f"Failed to get Discord user info: {user_response.status_code}"
            )
        user = user_response.json()
    except (requests.RequestException, ValueError) as exc:
        raise OAuthExchangeError(f"discord oauth request failed: {exc}") from exc

    if not user.get("id"):
        raise OAuthExchangeError("discord user response has no id")
    return DiscordIdentity(
        id=str(user["id"]),
        username=user.get("username") or str(user["id"]),
        access_token=access_token,
    )


def add_member_to_guild(identity: DiscordIdentity) -> bool:
    """Add the user to the community server. Already-joined users are left untouched.

    Returns False on any failure; a missed join is not fatal for verification.
    """
    try:
        response = requests.put(
            f"{DISCORD_API_BASE}/guilds/{settings.DISCORD_GUILD_ID}/members/{identity.id}",
            json={"access_token": identity.access_token},
            headers={"Authorization": f"Bot {settings.DISCORD_BOT_TOKEN}"},
            timeout=settings.COLLABORATOR_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        logger.warning("guild join failed for %s: %s", identity.id, exc)
        return False

    if response.status_code not in (201, 204):
        logger.warning(
            "guild join for %s returned %s", identity.id, response.status_code
        )
        return False
    logger.info("added/confirmed %s in guild", identity.username)
    return True
