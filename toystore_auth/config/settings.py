import re
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class Settings(BaseSettings):
    # Supabase (VITE_-prefixed names are what the frontend build uses)
    supabase_url: str = Field(
        default="",
        validation_alias=AliasChoices("supabase_url", "vite_supabase_url"),
    )
    supabase_anon_key: str = Field(
        default="",
        validation_alias=AliasChoices("supabase_anon_key", "vite_supabase_anon_key", "supabase_key"),
    )
    supabase_service_role_key: Optional[str] = None  # Enables managed signup and admin endpoints

    # Direct Postgres access (optional)
    database_url: Optional[str] = None
    use_pg: bool = False
    database_sslmode: str = "prefer"
    profiles_table: str = "profiles"
    legacy_profiles_table: str = "users"

    # App
    app_name: str = "toystore-auth"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @field_validator(
        "supabase_url", "supabase_anon_key", "supabase_service_role_key", "database_url",
        mode="before",
    )
    @classmethod
    def strip_quotes(cls, value):
        if isinstance(value, str) and len(value) >= 2 and value.startswith('"') and value.endswith('"'):
            return value[1:-1]
        return value

    @field_validator("profiles_table", "legacy_profiles_table")
    @classmethod
    def validate_table_name(cls, value: str) -> str:
        if not _IDENTIFIER_RE.match(value):
            raise ValueError(f"Invalid table name: {value!r}")
        return value

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def has_service_role(self) -> bool:
        return bool(self.supabase_service_role_key)

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and (self.supabase_anon_key or self.supabase_service_role_key))

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
