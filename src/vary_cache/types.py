"""
Types for request-time cache segmentation.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol, Union


class VaryCacheErrorCode(str, Enum):
    """Stable error codes returned by Vary Cache operations."""

    INVALID_GROUP_NAME = "invalid_vary_group_name"
    INVALID_GROUP_SEGMENT = "invalid_vary_group_segment"
    CANNOT_USE_DELIMITER = "vary_cache_group_cannot_use_delimiter"
    INVALID_CHARS = "vary_cache_group_invalid_chars"
    DID_SEND_HEADERS = "did_send_headers"


@dataclass(frozen=True)
class VaryCacheError:
    """
    Structured error value.

    Returned instead of raised. Falsy, so callers can write
    ``if not context.set_group_for_user(...)``; branch on ``code``.
    """

    code: VaryCacheErrorCode
    """Stable error code."""

    message: str
    """Human-readable description."""

    data: Optional[Dict[str, Any]] = None
    """Extra diagnostics (offending value, underlying code)."""

    def __bool__(self) -> bool:
        return False

    def get_error_code(self) -> str:
        return self.code.value


VaryCacheResult = Union[bool, VaryCacheError]
"""``True`` on success, a ``VaryCacheError`` otherwise."""


def is_vary_cache_error(value: Any) -> bool:
    """Check if an operation result is a ``VaryCacheError``."""
    return isinstance(value, VaryCacheError)


class VaryCacheEncryptionError(Exception):
    """Raised when encryption is requested without usable secrets."""

    pass


class VaryCacheWarning(UserWarning):
    """Developer-visible warning for rejected group registrations."""

    pass


class LifecycleState(str, Enum):
    """Header emission lifecycle."""

    COLD = "cold"
    EMITTED = "emitted"


@dataclass(frozen=True)
class SendHeadersEvent:
    """Published once per request after headers were emitted."""

    vary_sent: bool
    """Whether a Vary header was appended."""

    cookie_sent: bool
    """Whether the cookie was (re)issued."""

    vary_header: Optional[str] = None
    """The Vary token that was sent, if any."""

    cookie_name: Optional[str] = None
    """Name of the cookie that was sent, if any."""


SendHeadersListener = Callable[[SendHeadersEvent], None]
"""Observer of the post-emission notification."""


@dataclass(frozen=True)
class VaryCacheState:
    """Read-only snapshot of a context's internal state."""

    groups: Dict[str, str]
    is_user_in_nocache: bool
    should_update_group_cookie: bool
    should_update_nocache_cookie: bool
    lifecycle: LifecycleState
    encryption_enabled: bool

    @property
    def did_send_headers(self) -> bool:
        return self.lifecycle == LifecycleState.EMITTED


@dataclass
class CookieOptions:
    """Attributes applied to the outbound cookie."""

    path: str = "/"
    domain: Optional[str] = None
    max_age: int = 30 * 86400
    secure: bool = True
    httponly: bool = True
    samesite: Optional[str] = "lax"


@dataclass
class VaryCacheConfig:
    """Runtime configuration of a context."""

    segment_cookie_name: str = "vip-go-seg"
    auth_cookie_name: str = "vip-go-auth"
    segment_header_name: str = "X-VIP-Go-Segmentation"
    auth_header_name: str = "X-VIP-Go-Auth"
    cookie: CookieOptions = field(default_factory=CookieOptions)


class HeaderSink(Protocol):
    """
    Anything that can receive response headers.

    ``starlette.datastructures.MutableHeaders`` satisfies it.
    """

    def append(self, key: str, value: str) -> None:
        ...
