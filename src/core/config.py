from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Ignore unrelated env keys so the shared .env can also carry frontend variables.
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Travel CRM Finance Service"
    environment: str = "development"
    api_prefix: str = "/api/v1"
    cors_allow_origins: str = "http://localhost:5173,http://127.0.0.1:5173"
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    calculation_version: str = Field(default="v1", alias="CALCULATION_VERSION")

    supabase_url: str = Field(..., alias="SUPABASE_URL")
    supabase_service_role_key: Optional[str] = Field(
        default=None, alias="SUPABASE_SERVICE_ROLE_KEY"
    )
    supabase_anon_key: Optional[str] = Field(default=None, alias="SUPABASE_ANON_KEY")
    default_tenant_id: Optional[str] = Field(default=None, alias="DEFAULT_TENANT_ID")

    # JSON overrides; None keeps the built-in rule table and expense split.
    commission_rules: Optional[List[Dict[str, Any]]] = Field(default=None, alias="COMMISSION_RULES")
    default_commission_rule_id: Optional[str] = Field(
        default=None, alias="DEFAULT_COMMISSION_RULE_ID"
    )
    cost_allocation: Optional[Dict[str, float]] = Field(default=None, alias="COST_ALLOCATION")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_cors_origins() -> list[str]:
    settings = get_settings()
    return [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
