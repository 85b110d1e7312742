"""
Vary header and cookie emission.

Turns the final state of a request into a plan (which Vary token, which
cookie) and writes that plan into a header sink.
"""
import http.cookies
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from . import codec
from .crypto import CookieCipher
from .types import CookieOptions, HeaderSink, SendHeadersEvent, VaryCacheConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmissionPlan:
    """What should be written when headers go out."""

    vary_header: Optional[str] = None
    """Vary token to append, or None for no Vary header."""

    cookie_name: Optional[str] = None
    """Cookie to (re)issue, or None to leave the client's cookie alone."""

    cookie_value: str = ""
    """Cookie payload. Empty means the cookie is expired."""


def select_vary_header(
    config: VaryCacheConfig,
    has_groups: bool,
    nocache: bool,
    encryption_enabled: bool,
) -> Optional[str]:
    """
    Pick the Vary token.

    Groups vary on the segmentation token, or on the auth token once the
    cookie is encrypted. No-cache alone only varies on the auth token.
    """
    if has_groups:
        return config.auth_header_name if encryption_enabled else config.segment_header_name
    if nocache and encryption_enabled:
        return config.auth_header_name
    return None


def plan_emission(
    config: VaryCacheConfig,
    groups: Dict[str, str],
    nocache: bool,
    should_update_cookie: bool,
    cipher: Optional[CookieCipher] = None,
) -> EmissionPlan:
    """Decide the Vary token and cookie payload for the current state."""
    vary_header = select_vary_header(config, bool(groups), nocache, cipher is not None)

    if not should_update_cookie:
        return EmissionPlan(vary_header=vary_header)

    payload = codec.serialize(groups, nocache)
    if payload and cipher is not None:
        payload = cipher.encrypt(payload)

    cookie_name = config.auth_cookie_name if cipher is not None else config.segment_cookie_name
    return EmissionPlan(vary_header=vary_header, cookie_name=cookie_name, cookie_value=payload)


def build_set_cookie(name: str, value: str, options: CookieOptions) -> str:
    """
    Build a Set-Cookie header value.

    An empty value produces an already-expired cookie so the client drops it.
    """
    cookie: http.cookies.BaseCookie = http.cookies.SimpleCookie()
    cookie[name] = value
    morsel = cookie[name]

    if value:
        morsel["max-age"] = options.max_age
    else:
        morsel["max-age"] = 0
        morsel["expires"] = "Thu, 01 Jan 1970 00:00:00 GMT"

    if options.path:
        morsel["path"] = options.path
    if options.domain:
        morsel["domain"] = options.domain
    if options.secure:
        morsel["secure"] = True
    if options.httponly:
        morsel["httponly"] = True
    if options.samesite:
        morsel["samesite"] = options.samesite

    return cookie.output(header="").strip()


def apply_emission(
    sink: HeaderSink,
    plan: EmissionPlan,
    options: CookieOptions,
) -> SendHeadersEvent:
    """Write the plan into the sink and describe what was written."""
    # Build the cookie first so a bad cookie name leaves the sink untouched
    set_cookie = None
    if plan.cookie_name:
        set_cookie = build_set_cookie(plan.cookie_name, plan.cookie_value, options)

    if plan.vary_header:
        sink.append("Vary", plan.vary_header)
    if set_cookie is not None:
        sink.append("Set-Cookie", set_cookie)

    logger.debug(
        f"Vary cache headers emitted: vary={plan.vary_header!r} cookie={plan.cookie_name!r}"
    )

    return SendHeadersEvent(
        vary_sent=bool(plan.vary_header),
        cookie_sent=set_cookie is not None,
        vary_header=plan.vary_header,
        cookie_name=plan.cookie_name,
    )
