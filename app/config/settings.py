from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    # Supabase (all three are required; a missing key aborts startup)
    supabase_url: str
    supabase_key: str
    supabase_service_role_key: str  # Used for admin writes and the create-admin script

    # Storage
    storage_bucket: str = "resources"

    # Session / admin gate
    session_cookie_name: str = "access_token"
    admin_login_path: str = "/admin/login"
    admin_dashboard_path: str = "/admin/dashboard"

    # App
    app_name: str = "student-resources"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
