from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        validate_assignment=True,
    )

    app_env: str = "dev"
    database_url: str = "sqlite:///./reserverep.db"

    # Shared secret for /admin endpoints (?token=...). Unset = admin endpoints locked.
    admin_token: str | None = None

    # Twilio auth token for X-Twilio-Signature validation (unset = skip, dev only)
    twilio_auth_token: str | None = None
    # Public URL Twilio calls (e.g. https://api.example.com); needed behind proxies
    public_base_url: str | None = None

    # Conversation sessions (in-memory)
    session_ttl_seconds: int = 86400  # Idle sessions older than this are evicted (0 = never)

    reference_prefix: str = "RR"
    # Guest counts outside 1..max_guests are recorded as unknown (None)
    max_guests: int = 50
    copy_locale: str = "en"

    log_level: str = "INFO"


# Settings will load from environment variables or .env file
settings = Settings()
