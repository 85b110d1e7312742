"""
Request-time cache segmentation.

Decides which cache variant a response belongs to from a segmentation
cookie and registered groups, and emits the matching Vary header and
cookie for a front-line HTTP cache.
"""
from .types import (
    VaryCacheErrorCode,
    VaryCacheError,
    VaryCacheResult,
    VaryCacheEncryptionError,
    VaryCacheWarning,
    LifecycleState,
    SendHeadersEvent,
    SendHeadersListener,
    VaryCacheState,
    CookieOptions,
    VaryCacheConfig,
    HeaderSink,
    is_vary_cache_error,
)
from .codec import (
    GROUP_SEPARATOR,
    VALUE_SEPARATOR,
    NOCACHE_TOKEN,
    validate_cookie_value,
    serialize,
    parse,
)
from .crypto import CookieCipher
from .headers import (
    EmissionPlan,
    select_vary_header,
    plan_emission,
    build_set_cookie,
    apply_emission,
)
from .context import (
    VaryCacheContext,
    create_vary_cache_context,
)
from .config import (
    VaryCacheSettings,
    load_settings,
    get_settings,
)


__all__ = [
    # Types
    "VaryCacheErrorCode",
    "VaryCacheError",
    "VaryCacheResult",
    "VaryCacheEncryptionError",
    "VaryCacheWarning",
    "LifecycleState",
    "SendHeadersEvent",
    "SendHeadersListener",
    "VaryCacheState",
    "CookieOptions",
    "VaryCacheConfig",
    "HeaderSink",
    "is_vary_cache_error",
    # Cookie codec
    "GROUP_SEPARATOR",
    "VALUE_SEPARATOR",
    "NOCACHE_TOKEN",
    "validate_cookie_value",
    "serialize",
    "parse",
    # Encryption
    "CookieCipher",
    # Header emission
    "EmissionPlan",
    "select_vary_header",
    "plan_emission",
    "build_set_cookie",
    "apply_emission",
    # Context
    "VaryCacheContext",
    "create_vary_cache_context",
    # Settings
    "VaryCacheSettings",
    "load_settings",
    "get_settings",
]

__version__ = "1.0.0"
