"""Tests for CookieCipher."""
import pytest

from vary_cache import CookieCipher, VaryCacheEncryptionError, parse, serialize


class TestConstructor:
    @pytest.mark.parametrize(
        "key,iv",
        [
            (None, None),
            ("", ""),
            ("abc", ""),
            ("", "123"),
            (None, "123"),
            ("abc", None),
        ],
    )
    def test_rejects_missing_secrets(self, key, iv):
        with pytest.raises(VaryCacheEncryptionError):
            CookieCipher(key, iv)

    def test_accepts_secrets(self):
        assert CookieCipher("abc", "123") is not None


class TestEncryptDecrypt:
    def test_round_trip(self, cipher):
        token = cipher.encrypt("dev-group_--_yes")

        assert "dev-group" not in token
        assert cipher.decrypt(token) == "dev-group_--_yes"

    def test_token_is_cookie_safe(self, cipher):
        token = cipher.encrypt("nocache")

        assert "=" not in token
        assert ";" not in token
        assert " " not in token

    def test_same_secrets_decrypt_across_instances(self, cipher):
        token = cipher.encrypt("nocache")
        assert CookieCipher("abc", "123").decrypt(token) == "nocache"

    @pytest.mark.parametrize("key,iv", [("other", "123"), ("abc", "456")])
    def test_foreign_secrets_cannot_decrypt(self, cipher, key, iv):
        token = cipher.encrypt("nocache")
        assert CookieCipher(key, iv).decrypt(token) is None

    def test_tampered_token(self, cipher):
        token = cipher.encrypt("dev-group_--_yes")
        tampered = token[:-4] + ("AAAA" if not token.endswith("AAAA") else "BBBB")

        assert cipher.decrypt(tampered) is None

    @pytest.mark.parametrize("token", ["", "not-a-token", "dev-group_--_yes", "é"])
    def test_garbage_returns_none(self, cipher, token):
        assert cipher.decrypt(token) is None

    def test_codec_round_trip_through_cipher(self, cipher):
        groups = {"dev-group": "yes", "design-group": ""}
        token = cipher.encrypt(serialize(groups, True))

        assert parse(cipher.decrypt(token)) == (groups, True)
