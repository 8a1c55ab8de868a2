from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "Organize Your Club API"
    ENV: str = "development"
    LOG_LEVEL: str = Field("INFO", env="LOG_LEVEL")

    # -------------------------------------------------
    # Frontend Domains
    # -------------------------------------------------
    SITE_URL: str = Field("https://organizeyourclub.com", env="SITE_URL")

    FRONTEND_ORIGINS: List[str] = [
        "https://organizeyourclub.com",
        "https://www.organizeyourclub.com",
    ]

    # -------------------------------------------------
    # CORS (auto-built below)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (Primary DB & Auth)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = Field(None, env="SUPABASE_URL")
    SUPABASE_ANON_KEY: Optional[str] = Field(None, env="SUPABASE_ANON_KEY")
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = Field(None, env="SUPABASE_SERVICE_ROLE_KEY")

    # -------------------------------------------------
    # Platform operators (tenant admin portal)
    # -------------------------------------------------
    SUPER_ADMIN_EMAILS: List[str] = Field(default_factory=list, env="SUPER_ADMIN_EMAILS")

    # -------------------------------------------------
    # Account security
    # -------------------------------------------------
    PASSWORD_MIN_LENGTH: int = Field(8, env="PASSWORD_MIN_LENGTH")
    SESSION_CACHE_TTL_SECONDS: int = Field(60, env="SESSION_CACHE_TTL_SECONDS", description="How long a validated bearer token is trusted before re-checking with Supabase")

    # Public "locked out / request access" endpoint
    ACCESS_REQUEST_MAX: int = Field(5, env="ACCESS_REQUEST_MAX")
    ACCESS_REQUEST_WINDOW_SECONDS: int = Field(900, env="ACCESS_REQUEST_WINDOW_SECONDS")

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list dynamically after loading settings
# -------------------------------------------------
cors_origins = []

# 1) the site the invite / reset links point at
if settings.SITE_URL:
    domain = settings.SITE_URL
    if not domain.startswith("http"):
        domain = f"https://{domain}"
    cors_origins.append(domain.rstrip("/"))

# 2) any extra frontend origins
cors_origins.extend([d.rstrip("/") for d in settings.FRONTEND_ORIGINS])

# 3) remove duplicates
settings.BACKEND_CORS_ORIGINS = sorted(list(set(cors_origins)))
