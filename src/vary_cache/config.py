"""Vary Cache configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .types import CookieOptions, VaryCacheConfig


class VaryCacheSettings(BaseSettings):
    """Settings loaded from ``VARY_CACHE_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="VARY_CACHE_",
        env_file=None,  # Use system env only unless load_settings gets a file
        extra="ignore",
    )

    # Cookie and header names understood by the edge cache
    segment_cookie_name: str = "vip-go-seg"
    auth_cookie_name: str = "vip-go-auth"
    segment_header_name: str = "X-VIP-Go-Segmentation"
    auth_header_name: str = "X-VIP-Go-Auth"

    # Encryption secrets
    auth_cookie_key: Optional[str] = None
    auth_cookie_iv: Optional[str] = None
    encryption_enabled: bool = False

    # Outbound cookie attributes
    cookie_path: str = "/"
    cookie_domain: Optional[str] = None
    cookie_max_age: int = 30 * 86400  # 30 days
    cookie_secure: bool = True
    cookie_httponly: bool = True
    cookie_samesite: Optional[Literal["lax", "strict", "none"]] = "lax"

    def to_config(self) -> VaryCacheConfig:
        """Build the runtime config consumed by VaryCacheContext."""
        return VaryCacheConfig(
            segment_cookie_name=self.segment_cookie_name,
            auth_cookie_name=self.auth_cookie_name,
            segment_header_name=self.segment_header_name,
            auth_header_name=self.auth_header_name,
            cookie=CookieOptions(
                path=self.cookie_path,
                domain=self.cookie_domain,
                max_age=self.cookie_max_age,
                secure=self.cookie_secure,
                httponly=self.cookie_httponly,
                samesite=self.cookie_samesite,
            ),
        )


def load_settings(env_file: Optional[str] = None) -> VaryCacheSettings:
    """Build settings, optionally reading a dotenv file as well."""
    if env_file:
        return VaryCacheSettings(_env_file=env_file)
    return VaryCacheSettings()


@lru_cache()
def get_settings() -> VaryCacheSettings:
    """Get cached settings instance."""
    return load_settings()
