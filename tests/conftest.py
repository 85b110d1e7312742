"""Pytest configuration for vary_cache tests."""
import pytest
from starlette.datastructures import MutableHeaders

from vary_cache import CookieCipher, VaryCacheContext, get_settings

TEST_KEY = "abc"
TEST_IV = "123"


@pytest.fixture
def context():
    """A fresh, unencrypted context (one request)."""
    return VaryCacheContext()


@pytest.fixture
def cipher():
    """Cipher built from the test secrets."""
    return CookieCipher(TEST_KEY, TEST_IV)


@pytest.fixture
def encrypted_context(cipher):
    """A fresh context with cookie encryption enabled."""
    ctx = VaryCacheContext()
    ctx.use_cipher(cipher)
    return ctx


@pytest.fixture
def headers():
    """Empty response headers to emit into."""
    return MutableHeaders()


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; isolate tests from each other."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def cookie_value():
    """Extract the value from a Set-Cookie header."""

    def _cookie_value(set_cookie_header: str) -> str:
        return set_cookie_header.split(";", 1)[0].split("=", 1)[1]

    return _cookie_value
