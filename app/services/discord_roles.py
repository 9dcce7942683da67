"""
Holder role grant/revoke through the Discord REST API (bot token).

Both operations are idempotent: granting a role the member already has and
revoking a role the member does not have are no-ops on Discord's side.
The holder role is created on first use when the guild does not have it yet.
"""

import logging
import threading
from typing import Dict, Optional

import requests

from app.core.config import settings
from app.core.errors import RoleSyncError

logger = logging.getLogger(__name__)

DISCORD_API_BASE = "https://discord.com/api/v10"
HOLDER_ROLE_COLOR = 0x9333EA
# Discord JSON error code for "Unknown Member"
UNKNOWN_MEMBER_CODE = 10007

_role_ids: Dict[str, str] = {}
_role_lock = threading.Lock()


def _headers() -> Dict[str, str]:
    return {"Authorization": f"Bot {settings.DISCORD_BOT_TOKEN}"}


def _guild_url(path: str) -> str:
    return f"{DISCORD_API_BASE}/guilds/{settings.DISCORD_GUILD_ID}{path}"


def _request(method: str, url: str, **kwargs) -> requests.Response:
    try:
        return requests.request(
            method,
            url,
            headers=_headers(),
            timeout=settings.COLLABORATOR_TIMEOUT_SECONDS,
            **kwargs,
        )
    except requests.RequestException as exc:
        raise RoleSyncError(f"discord {method} {url} failed: {exc}") from exc


def _is_unknown_member(response: requests.Response) -> bool:
    if response.status_code != 404:
        return False
    try:
        return response.json().get("code") == UNKNOWN_MEMBER_CODE
    except ValueError:
        return False


def get_role_id(name: str, create: bool = False) -> Optional[str]:
    """Look up a guild role id by name, creating the role when asked to."""
    with _role_lock:
        if name in _role_ids:
            return _role_ids[name]

        response = _request("GET", _guild_url("/roles"))
        if response.status_code != 200:
            raise RoleSyncError(f"failed to list guild roles: {response.status_code}")
        for role in response.json():
            _role_ids.setdefault(role.get("name"), str(role["id"]))
        if name in _role_ids:
            return _role_ids[name]

        if not create:
            return None

        response = _request(
            "POST",
            _guild_url("/roles"),
            json={
                "name": name,
                "color": HOLDER_ROLE_COLOR,
                "permissions": "0",
                "mentionable": False,
            },
        )
        if response.status_code not in (200, 201):
            raise RoleSyncError(f"failed to create role {name}: {response.status_code}")
        _role_ids[name] = str(response.json()["id"])
        logger.info("created role %s", name)
        return _role_ids[name]


def clear_role_cache() -> None:
    with _role_lock:
        _role_ids.clear()


def grant_holder_role(discord_id: str) -> None:
    """Ensure the member has the holder role and drop the unverified role.

    Raises RoleSyncError when the holder role could not be added, e.g. the
    user has not joined the server.
    """
    role_id = get_role_id(settings.HOLDER_ROLE_NAME, create=True)
    response = _request("PUT", _guild_url(f"/members/{discord_id}/roles/{role_id}"))
    if response.status_code != 204:
        raise RoleSyncError(
            f"failed to assign holder role to {discord_id}: {response.status_code}"
        )
    logger.info("assigned holder role to %s", discord_id)

    try:
        unverified_id = get_role_id(settings.UNVERIFIED_ROLE_NAME)
        if unverified_id:
            _request("DELETE", _guild_url(f"/members/{discord_id}/roles/{unverified_id}"))
    except RoleSyncError as exc:
        logger.warning("could not remove unverified role from %s: %s", discord_id, exc)


def revoke_holder_role(discord_id: str) -> None:
    """Ensure the member no longer has the holder role.

    A member who already left the server has no role to revoke and counts as success.
    """
    role_id = get_role_id(settings.HOLDER_ROLE_NAME)
    if role_id is None:
        return
    response = _request("DELETE", _guild_url(f"/members/{discord_id}/roles/{role_id}"))
    if response.status_code == 204 or _is_unknown_member(response):
        logger.info("removed holder role from %s", discord_id)
        return
    raise RoleSyncError(
        f"failed to remove holder role from {discord_id}: {response.status_code}"
    )
