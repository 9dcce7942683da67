from enum import Enum
from typing import List, Optional

from fastapi import Depends, Form, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import SocialGraphError
from app.core.rate_limit import auth_rate_limit, limiter
from app.core.router_decorated import APIRouter
from app.core.templates import templates
from app.core.validation import is_valid_discord_id, is_valid_wallet, parse_fid
from app.db.session import get_db
from app.services import neynar
from app.services.verification import (
    STATUS_INVALID_SESSION,
    STATUS_NOT_HOLDER,
    STATUS_VERIFIED,
    VerificationOutcome,
    complete_verification,
    start_verification,
)

router = APIRouter()
group_tags: List[str | Enum] = ["Verification flow"]

"""
Browser-facing verification flow

1. /verify (Farcaster) or /auth/wallet-connect (wallet only) shows a form for a discord_id
2. the form POST, or GET /auth/discord?fid&wallet, stores a pending session and
   redirects to Discord OAuth with the session id as state
3. Discord redirects to /auth/discord/callback?code&state, the flow runs and
   a result page is rendered
"""

HIGH_TRUST_COLOR = "#10b981"
MEDIUM_TRUST_COLOR = "#f59e0b"
LOW_TRUST_COLOR = "#ef4444"


def _score_color(score: Optional[int]) -> str:
    if score is None or score < 25:
        return LOW_TRUST_COLOR
    if score < 50:
        return MEDIUM_TRUST_COLOR
    return HIGH_TRUST_COLOR


def _error_page(request: Request, message: str, status_code: int = status.HTTP_200_OK) -> HTMLResponse:
    return templates.TemplateResponse(
        request, "error.html", {"message": message}, status_code=status_code
    )


def _render_outcome(request: Request, outcome: VerificationOutcome) -> HTMLResponse:
    if outcome.status == STATUS_VERIFIED:
        return templates.TemplateResponse(
            request,
            "success.html",
            {
                "outcome": outcome,
                "score_color": _score_color(outcome.trust_score),
                "role_name": settings.HOLDER_ROLE_NAME,
                "guild_id": settings.DISCORD_GUILD_ID,
            },
        )
    if outcome.status == STATUS_NOT_HOLDER:
        return templates.TemplateResponse(request, "no_nft.html", {"outcome": outcome})
    if outcome.internal_error:
        return _error_page(request, outcome.message, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return _error_page(request, outcome.message)


@router.get(
    "/auth/discord",
    tags=group_tags,
    status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    response_class=RedirectResponse,
)
@limiter.limit(auth_rate_limit)
def start_discord_auth(
    request: Request,
    wallet: Optional[str] = Query(default=None, description="Wallet holding the NFT"),
    fid: Optional[str] = Query(default=None, description="Farcaster ID, empty or 0 for none"),
    db: Session = Depends(get_db),
):
    """
    Store a pending verification and redirect to Discord OAuth.

    Query Parameters:
    - wallet: 0x-prefixed 40 hex character address (required)
    - fid: optional Farcaster ID, its linked wallets are checked as well
    """
    if not wallet:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing wallet parameter")
    if not is_valid_wallet(wallet):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid wallet address format")
    try:
        social_id = parse_fid(fid)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid fid parameter")

    return RedirectResponse(start_verification(db, social_id, wallet.strip()))


@router.get("/auth/discord/callback", tags=group_tags, response_class=HTMLResponse)
def discord_callback(
    request: Request,
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    """Finish verification after Discord redirects back and render the result page."""
    outcome = complete_verification(db, state, code)
    if outcome.status == STATUS_INVALID_SESSION:
        return _error_page(request, outcome.message, status.HTTP_400_BAD_REQUEST)
    return _render_outcome(request, outcome)


@router.get("/verify", tags=group_tags, response_class=HTMLResponse)
@limiter.limit(auth_rate_limit)
def farcaster_verify_page(request: Request, discord_id: Optional[str] = Query(default=None)):
    """Form to verify with a Farcaster ID, linked from the Discord verify button."""
    if not is_valid_discord_id(discord_id):
        return _error_page(request, "Invalid or missing Discord ID", status.HTTP_400_BAD_REQUEST)
    return templates.TemplateResponse(
        request, "verify_farcaster.html", {"discord_id": discord_id.strip(), "error": None}
    )


@router.post("/verify", tags=group_tags, response_class=HTMLResponse)
@limiter.limit(auth_rate_limit)
def farcaster_verify_submit(
    request: Request,
    discord_id: str = Form(default=""),
    fid: str = Form(default=""),
    wallet: str = Form(default=""),
    db: Session = Depends(get_db),
):
    """
    Start verification with a Farcaster ID.

    When no wallet is given the first wallet linked to the Farcaster account is used.
    """
    if not is_valid_discord_id(discord_id):
        return _error_page(request, "Invalid Discord ID", status.HTTP_400_BAD_REQUEST)
    discord_id = discord_id.strip()

    def form_error(message: str) -> HTMLResponse:
        return templates.TemplateResponse(
            request,
            "verify_farcaster.html",
            {"discord_id": discord_id, "error": message},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        social_id = parse_fid(fid)
    except ValueError:
        social_id = None
    if social_id is None:
        return form_error("Please enter a valid Farcaster ID")

    wallet = wallet.strip()
    if wallet and not is_valid_wallet(wallet):
        return form_error("Invalid wallet address format")

    if not wallet:
        try:
            linked = neynar.get_farcaster_wallets(social_id)
        except SocialGraphError:
            linked = []
        if not linked:
            return form_error("No wallets found for this FID. Please enter a wallet address.")
        wallet = linked[0]

    return RedirectResponse(
        start_verification(db, social_id, wallet), status_code=status.HTTP_303_SEE_OTHER
    )


@router.get("/auth/wallet-connect", tags=group_tags, response_class=HTMLResponse)
@limiter.limit(auth_rate_limit)
def wallet_verify_page(request: Request, discord_id: Optional[str] = Query(default=None)):
    """Form to verify with a wallet address only."""
    if not is_valid_discord_id(discord_id):
        return _error_page(request, "Invalid or missing Discord ID", status.HTTP_400_BAD_REQUEST)
    return templates.TemplateResponse(
        request, "verify_wallet.html", {"discord_id": discord_id.strip(), "error": None}
    )


@router.post("/auth/wallet-connect", tags=group_tags, response_class=HTMLResponse)
@limiter.limit(auth_rate_limit)
def wallet_verify_submit(
    request: Request,
    discord_id: str = Form(default=""),
    wallet: str = Form(default=""),
    db: Session = Depends(get_db),
):
    """Start a wallet-only verification, no Farcaster account is attached."""
    if not is_valid_discord_id(discord_id):
        return _error_page(request, "Invalid Discord ID", status.HTTP_400_BAD_REQUEST)

    wallet = wallet.strip()
    if not is_valid_wallet(wallet):
        return templates.TemplateResponse(
            request,
            "verify_wallet.html",
            {"discord_id": discord_id.strip(), "error": "Please enter a valid wallet address"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    return RedirectResponse(start_verification(db, None, wallet), status_code=status.HTTP_303_SEE_OTHER)
