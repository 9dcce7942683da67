from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv(override=True)

class Settings(BaseSettings):
    PROJECT_NAME: str = "Holder Gate"
    # Application settings
    PORT: int = 3000
    HOST: str = "127.0.0.1"
    VERSION: str = "1.0.0"
    DOC_PASSWORD: str | None = None
    LOG_LEVEL: str = "INFO"
    # Debug settings
    DEBUG: bool = False

    # SQLAlchemy database URL
    DATABASE_URL: str

    # Discord OAuth application
    DISCORD_CLIENT_ID: str
    DISCORD_CLIENT_SECRET: str
    DISCORD_REDIRECT_URI: str

    # Discord community (guild) and bot
    DISCORD_GUILD_ID: str
    DISCORD_BOT_TOKEN: str
    HOLDER_ROLE_NAME: str = "Holder"
    UNVERIFIED_ROLE_NAME: str = "Unverified"

    # Chain settings (ERC-721 collection)
    CHAIN_RPC_URL: str
    NFT_CONTRACT_ADDRESS: str

    # Neynar (Farcaster social graph)
    NEYNAR_API_KEY: str

    # per-call timeout for every collaborator request
    COLLABORATOR_TIMEOUT_SECONDS: float = 10.0

    # Reconciliation settings
    SCHEDULER_ENABLED: bool = True
    RECONCILE_INTERVAL_SECONDS: int = 6 * 60 * 60  # 6 hours
    STALE_AFTER_SECONDS: int = 24 * 60 * 60  # 24 hours
    RECONCILE_BATCH_SIZE: int = 100
    PENDING_SWEEP_INTERVAL_SECONDS: int = 60 * 60  # 1 hour
    PENDING_SESSION_TTL_SECONDS: int = 60 * 60  # 1 hour

    # Per-IP limit on the browser verification routes (limits syntax, e.g. "200/15 minutes")
    RATE_LIMIT_ENABLED: bool = True
    AUTH_RATE_LIMIT: str = "200/15 minutes"

    # informational only, a low score is logged but never blocks a grant
    TRUST_SCORE_MIN: int | None = None

    class Config:
        env_file = ".env"

# Instantiate the settings, missing required values fail here at startup
settings = Settings()
