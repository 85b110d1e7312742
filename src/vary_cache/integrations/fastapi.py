"""
FastAPI / Starlette integration for vary_cache.

Provides an ASGI middleware that owns the per-request context and fires
the header emission on ``http.response.start``, plus a dependency to
reach the context from route handlers.
"""
import logging
from typing import Optional

from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection, Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..config import VaryCacheSettings, get_settings
from ..context import VaryCacheContext, create_vary_cache_context
from ..crypto import CookieCipher

logger = logging.getLogger(__name__)

STATE_KEY = "vary_cache"


class VaryCacheMiddleware:
    """
    ASGI middleware that segments responses for a front-line cache.

    Example:
        from fastapi import Depends, FastAPI
        from vary_cache import VaryCacheContext
        from vary_cache.integrations.fastapi import VaryCacheMiddleware, get_vary_cache

        app = FastAPI()
        app.add_middleware(VaryCacheMiddleware)

        @app.get("/")
        async def home(vary_cache: VaryCacheContext = Depends(get_vary_cache)):
            vary_cache.register_group("dev-group")
            return {"dev": vary_cache.is_user_in_group_segment("dev-group", "yes")}
    """

    def __init__(self, app: ASGIApp, settings: Optional[VaryCacheSettings] = None) -> None:
        self.app = app
        self.settings = settings or get_settings()
        self.config = self.settings.to_config()
        self.cipher: Optional[CookieCipher] = None

        if self.settings.encryption_enabled:
            # Misconfigured secrets must stop the app at startup
            self.cipher = CookieCipher(self.settings.auth_cookie_key, self.settings.auth_cookie_iv)
            logger.info("Vary cache cookie encryption enabled")

    def create_context(self, scope: Scope) -> VaryCacheContext:
        """Build the context for one request from its cookies."""
        return create_vary_cache_context(
            self.config,
            cookies=HTTPConnection(scope).cookies,
            cipher=self.cipher,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        context = self.create_context(scope)
        scope.setdefault("state", {})[STATE_KEY] = context

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                context.send_headers(MutableHeaders(scope=message))
            await send(message)

        await self.app(scope, receive, send_wrapper)


def get_vary_cache(request: Request) -> VaryCacheContext:
    """
    FastAPI dependency returning the request's VaryCacheContext.

    Raises:
        RuntimeError: If VaryCacheMiddleware is not installed.
    """
    context = getattr(request.state, STATE_KEY, None)
    if context is None:
        raise RuntimeError("VaryCacheMiddleware is not installed")
    return context
