"""
Per-request segmentation state.

A VaryCacheContext holds the group registry, the no-cache flag and the
header lifecycle guard for exactly one request. Build a fresh context for
every request; nothing is shared between requests.
"""
import logging
import warnings
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set

from . import codec
from .config import get_settings
from .crypto import CookieCipher
from .headers import apply_emission, plan_emission
from .types import (
    HeaderSink,
    LifecycleState,
    SendHeadersEvent,
    SendHeadersListener,
    VaryCacheConfig,
    VaryCacheError,
    VaryCacheErrorCode,
    VaryCacheResult,
    VaryCacheState,
    VaryCacheWarning,
)

logger = logging.getLogger(__name__)


def _did_send_headers_error(operation: str) -> VaryCacheError:
    return VaryCacheError(
        code=VaryCacheErrorCode.DID_SEND_HEADERS,
        message=f"Cannot call {operation}() after headers have been sent",
        data={"operation": operation},
    )


def _wrap_validation_error(
    code: VaryCacheErrorCode, subject: str, value: str, cause: VaryCacheError
) -> VaryCacheError:
    return VaryCacheError(
        code=code,
        message=f"Invalid Vary Cache {subject} {value!r}: {cause.message}",
        data={"value": value, "cause": cause.code.value},
    )


class VaryCacheContext:
    """
    Cache segmentation controller for a single request.

    Implements:
    - Group registration and segment assignment
    - Segment membership checks
    - No-cache opt-out
    - Optional cookie encryption
    - One-shot Vary/Set-Cookie emission with observer notification

    Example:
        context = VaryCacheContext()
        context.parse_cookies(request.cookies)
        context.register_groups(["dev-group"])

        if context.is_user_in_group_segment("dev-group", "yes"):
            ...

        # Exactly once, right before the response headers go out
        context.send_headers(response.headers)
    """

    def __init__(self, config: Optional[VaryCacheConfig] = None) -> None:
        self._config = config or VaryCacheConfig()
        self._groups: Dict[str, str] = {}
        self._is_user_in_nocache = False
        self._should_update_group_cookie = False
        self._should_update_nocache_cookie = False
        self._lifecycle = LifecycleState.COLD
        self._cipher: Optional[CookieCipher] = None
        self._listeners: Set[SendHeadersListener] = set()

    # === Lifecycle guard ===

    @property
    def did_send_headers(self) -> bool:
        """Whether the headers boundary already fired."""
        return self._lifecycle == LifecycleState.EMITTED

    def _report_registration_failure(self, error: VaryCacheError) -> VaryCacheError:
        """Registration failures are developer mistakes: warn as well as return."""
        logger.warning(error.message)
        warnings.warn(error.message, VaryCacheWarning, stacklevel=4)
        return error

    # === Group registry ===

    def _validate_group_name(self, name: str) -> VaryCacheResult:
        result = codec.validate_cookie_value(name)
        if result is not True:
            return _wrap_validation_error(
                VaryCacheErrorCode.INVALID_GROUP_NAME, "group name", name, result
            )
        return True

    def register_group(self, name: str) -> VaryCacheResult:
        """
        Register a group the current page varies on.

        Args:
            name: Group name.

        Returns:
            True on success (also when already registered), else a
            VaryCacheError. Failures also raise a VaryCacheWarning.
        """
        return self._register([name], "register_group")

    def register_groups(self, names: Iterable[str]) -> VaryCacheResult:
        """
        Register several groups at once.

        All-or-nothing: a single invalid name leaves the registry untouched.
        """
        names = [names] if isinstance(names, str) else list(names)
        return self._register(names, "register_groups")

    def _register(self, names: List[str], operation: str) -> VaryCacheResult:
        if self.did_send_headers:
            return self._report_registration_failure(_did_send_headers_error(operation))

        for name in names:
            valid = self._validate_group_name(name)
            if valid is not True:
                return self._report_registration_failure(valid)

        for name in names:
            self._groups.setdefault(name, "")

        return True

    def set_group_for_user(self, name: str, value: str) -> VaryCacheResult:
        """
        Assign the current user to a segment of a group.

        Returns:
            True on success, else a VaryCacheError with code
            ``invalid_vary_group_name``, ``invalid_vary_group_segment`` or
            ``did_send_headers``.
        """
        if self.did_send_headers:
            logger.warning(f"set_group_for_user({name!r}) called after headers were sent")
            return _did_send_headers_error("set_group_for_user")

        valid = self._validate_group_name(name)
        if valid is not True:
            logger.info(valid.message)
            return valid

        segment_valid = codec.validate_cookie_value(value)
        if segment_valid is not True:
            error = _wrap_validation_error(
                VaryCacheErrorCode.INVALID_GROUP_SEGMENT, "group segment", value, segment_valid
            )
            logger.info(error.message)
            return error

        self._groups[name] = value
        self._should_update_group_cookie = True
        return True

    def is_user_in_group(self, name: str) -> bool:
        """Check if the group is known for the current user (any segment)."""
        return name in self._groups

    def is_user_in_group_segment(self, name: str, value: Optional[str]) -> bool:
        """
        Check if the current user is in a specific segment of a group.

        ``""`` and ``"0"`` are distinct segments; None never matches.
        """
        if value is None or not self.is_user_in_group(name):
            return False

        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)

        return self._groups[name] == value

    def get_groups(self) -> Dict[str, str]:
        """Get a copy of the registered groups and their segments."""
        return dict(self._groups)

    # === No-cache ===

    def _set_nocache(self, enabled: bool, operation: str) -> VaryCacheResult:
        if self.did_send_headers:
            logger.warning(f"{operation}() called after headers were sent")
            return _did_send_headers_error(operation)

        self._is_user_in_nocache = enabled
        self._should_update_nocache_cookie = True
        return True

    def set_nocache_for_user(self) -> VaryCacheResult:
        """Make the current user bypass the shared cache."""
        return self._set_nocache(True, "set_nocache_for_user")

    def remove_nocache_for_user(self) -> VaryCacheResult:
        """Let the current user use the shared cache again."""
        return self._set_nocache(False, "remove_nocache_for_user")

    def is_user_in_nocache(self) -> bool:
        return self._is_user_in_nocache

    # === Encryption ===

    def enable_encryption(self, key: Optional[str] = None, iv: Optional[str] = None) -> None:
        """
        Encrypt the cookie with the given secrets.

        Without arguments the secrets come from ``VARY_CACHE_AUTH_COOKIE_KEY``
        and ``VARY_CACHE_AUTH_COOKIE_IV``.

        Raises:
            VaryCacheEncryptionError: If key or iv is missing or empty.
        """
        if key is None and iv is None:
            settings = get_settings()
            key, iv = settings.auth_cookie_key, settings.auth_cookie_iv
        self.use_cipher(CookieCipher(key, iv))

    def use_cipher(self, cipher: CookieCipher) -> None:
        """Encrypt the cookie with an already configured cipher."""
        self._cipher = cipher

    def is_encryption_enabled(self) -> bool:
        return self._cipher is not None

    def get_cookie_name(self) -> str:
        """Name of the cookie carrying the state in the current mode."""
        if self._cipher is not None:
            return self._config.auth_cookie_name
        return self._config.segment_cookie_name

    # === Inbound cookie ===

    def parse_cookies(self, cookies: Mapping[str, str]) -> None:
        """
        Load state from the request cookies.

        Cookie groups are merged into the registry; an unreadable cookie
        is ignored. Does not mark anything for rewrite, and does nothing
        once headers have been sent.
        """
        if self.did_send_headers:
            logger.warning("parse_cookies() called after headers were sent")
            return

        raw = cookies.get(self.get_cookie_name())
        if not raw:
            return

        if self._cipher is not None:
            raw = self._cipher.decrypt(raw)
            if raw is None:
                return

        groups, nocache = codec.parse(raw)
        self._groups.update(groups)
        self._is_user_in_nocache = self._is_user_in_nocache or nocache
        logger.debug(f"Parsed vary cache cookie: groups={list(groups)} nocache={nocache}")

    # === Emission ===

    def on(self, listener: SendHeadersListener) -> Callable[[], None]:
        """Add a listener for the post-emission notification."""
        self._listeners.add(listener)
        return lambda: self._listeners.discard(listener)

    def off(self, listener: SendHeadersListener) -> None:
        """Remove a listener."""
        self._listeners.discard(listener)

    def _emit(self, event: SendHeadersEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Vary cache send_headers listener failed")

    def send_headers(self, headers: HeaderSink) -> Optional[SendHeadersEvent]:
        """
        Emit Vary and Set-Cookie headers.

        Call at the point response headers are about to be sent. Only the
        first call writes anything and notifies listeners; later calls
        return None.
        """
        if self.did_send_headers:
            logger.debug("send_headers() already ran for this request")
            return None

        plan = plan_emission(
            self._config,
            self._groups,
            self._is_user_in_nocache,
            self._should_update_group_cookie or self._should_update_nocache_cookie,
            self._cipher,
        )
        event = apply_emission(headers, plan, self._config.cookie)

        self._lifecycle = LifecycleState.EMITTED
        self._emit(event)
        return event

    # === Introspection ===

    def inspect(self) -> VaryCacheState:
        """Snapshot of internal state, for tests and diagnostics."""
        return VaryCacheState(
            groups=dict(self._groups),
            is_user_in_nocache=self._is_user_in_nocache,
            should_update_group_cookie=self._should_update_group_cookie,
            should_update_nocache_cookie=self._should_update_nocache_cookie,
            lifecycle=self._lifecycle,
            encryption_enabled=self._cipher is not None,
        )

    def get_config(self) -> VaryCacheConfig:
        """Get configuration."""
        return self._config


def create_vary_cache_context(
    config: Optional[VaryCacheConfig] = None,
    cookies: Optional[Mapping[str, str]] = None,
    cipher: Optional[CookieCipher] = None,
) -> VaryCacheContext:
    """Create a context, optionally encrypted and seeded from request cookies."""
    context = VaryCacheContext(config)
    if cipher is not None:
        context.use_cipher(cipher)
    if cookies is not None:
        context.parse_cookies(cookies)
    return context
