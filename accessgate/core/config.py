"""
Application configuration.
All settings are loaded from environment variables.
Use .env.example as a reference for required variables.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    IMPORTANT: Secrets have no defaults - they MUST be set in .env file.
    Empty webhook/admin secrets disable those endpoints (every call is rejected).
    """

    # ===========================================
    # APPLICATION
    # ===========================================
    app_env: str = "local"
    # Comma-separated. Empty = app_public_base_url only.
    cors_origins: str = ""
    # Trusted proxy IPs (comma-separated). Used for X-Forwarded-For in production.
    trusted_proxy_ips: str = ""
    # Public base of this API (access and recovery links point here)
    api_public_base_url: str = "http://localhost:8000"
    # Public base of the landing page (logout and recovery status redirects)
    app_public_base_url: str = "http://localhost:3000"

    # ===========================================
    # REDIS (key-value store for tokens, sessions, entitlements)
    # ===========================================
    redis_url: str  # Required, no default

    # ===========================================
    # PURCHASE WEBHOOK
    # ===========================================
    webhook_secret: str = ""
    webhook_secret_header: str = "X-Webhook-Token"
    webhook_purchase_event: str = "purchase_approved"
    webhook_revoke_events: str = "purchase_refunded,purchase_chargeback"

    # ===========================================
    # TOKEN & SESSION LIFETIMES (milliseconds)
    # ===========================================
    access_token_ttl_ms: int = 24 * 60 * 60 * 1000  # 24h
    recover_token_ttl_ms: int = 15 * 60 * 1000  # 15 min
    session_ttl_ms: int = 30 * 24 * 60 * 60 * 1000  # 30 days

    # ===========================================
    # SESSION COOKIE
    # ===========================================
    session_cookie_name: str = "ag_session"
    session_secret: str  # Required, no default
    session_cookie_secure: bool = False  # Set True in production (HTTPS)
    session_cookie_samesite: str = "lax"
    # grace: revoked buyers keep their session until it expires
    # enforce: every guarded request re-checks the entitlement
    revoked_session_policy: str = "grace"

    # ===========================================
    # ADMIN API
    # ===========================================
    admin_api_token: str = ""

    # ===========================================
    # EMAIL (Resend)
    # ===========================================
    resend_api_url: str = "https://api.resend.com/emails"
    resend_api_key: str = ""  # Empty = dev mode, links are logged instead of sent
    mail_from: str = "Access <onboarding@resend.dev>"
    mail_reply_to: str = ""
    mail_timeout: float = 10.0

    # ===========================================
    # OBJECT STORAGE (S3 / R2 signed URLs)
    # ===========================================
    s3_endpoint_url: str = ""
    s3_region: str = "auto"
    s3_access_key_id: str = ""
    s3_secret_access_key: str = ""
    s3_bucket: str = ""
    signed_url_ttl_seconds: int = 300
    # Object keys a session may download (comma-separated)
    content_object_keys: str = ""

    # ===========================================
    # RATE LIMIT (recovery requests)
    # ===========================================
    recover_rate_limit_attempts: int = 5
    recover_rate_limit_window_seconds: int = 900  # 15 min

    # ===========================================
    # CIRCUIT BREAKER
    # ===========================================
    cb_failure_threshold: int = 5
    cb_open_seconds: int = 30

    # ===========================================
    # LOGGING
    # ===========================================
    log_level: str = "INFO"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("session_secret")
    @classmethod
    def validate_session_secret(cls, v: str) -> str:
        """Ensure session secret is reasonably secure."""
        if len(v) < 16:
            raise ValueError("session_secret must be at least 16 characters")
        if v in ("changeme", "secret", "password", "admin"):
            raise ValueError("session_secret is too weak, please change it")
        return v

    @field_validator("revoked_session_policy")
    @classmethod
    def validate_revoked_session_policy(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("grace", "enforce"):
            raise ValueError("revoked_session_policy must be 'grace' or 'enforce'")
        return v

    @field_validator("access_token_ttl_ms", "recover_token_ttl_ms", "session_ttl_ms")
    @classmethod
    def validate_positive_ttl(cls, v: int) -> int:
        """A zero or negative lifetime would make every token expire on creation."""
        if v <= 0:
            raise ValueError("token and session TTLs must be positive milliseconds")
        return v

    @field_validator("api_public_base_url", "app_public_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def trusted_proxy_ips_set(self) -> set[str]:
        """Get trusted proxy IPs as a set."""
        return {ip.strip() for ip in self.trusted_proxy_ips.split(",") if ip.strip()}

    @property
    def cors_origins_list(self) -> list[str]:
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return origins or [self.app_public_base_url]

    @property
    def webhook_revoke_events_set(self) -> set[str]:
        return {e.strip().lower() for e in self.webhook_revoke_events.split(",") if e.strip()}

    @property
    def content_object_keys_list(self) -> list[str]:
        return [k.strip() for k in self.content_object_keys.split(",") if k.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
