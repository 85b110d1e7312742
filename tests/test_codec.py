"""
Tests for the segmentation cookie codec.

Coverage includes:
- Validation error codes for delimiters and characters
- Serialization order and the no-cache token
- Lenient parsing of malformed, hostile input
- Round-trips for values accepted by the validator
"""
import pytest

from vary_cache import (
    GROUP_SEPARATOR,
    NOCACHE_TOKEN,
    VALUE_SEPARATOR,
    VaryCacheError,
    VaryCacheErrorCode,
    parse,
    serialize,
    validate_cookie_value,
)


class TestValidateCookieValue:
    @pytest.mark.parametrize(
        "value,expected_code",
        [
            ("dev-group---__", VaryCacheErrorCode.CANNOT_USE_DELIMITER),
            ("dev-group_--_", VaryCacheErrorCode.CANNOT_USE_DELIMITER),
            ("dev_--_group", VaryCacheErrorCode.CANNOT_USE_DELIMITER),
            ("dev-group%", VaryCacheErrorCode.INVALID_CHARS),
            ("dev group", VaryCacheErrorCode.INVALID_CHARS),
            ("dev;group", VaryCacheErrorCode.INVALID_CHARS),
            ("grüppe", VaryCacheErrorCode.INVALID_CHARS),
        ],
    )
    def test_invalid_values(self, value, expected_code):
        result = validate_cookie_value(value)

        assert isinstance(result, VaryCacheError)
        assert result.code == expected_code
        assert result.get_error_code() == expected_code.value
        assert result.message

    @pytest.mark.parametrize("value", ["dev-group", "yes", "0", "", "A_b-9", "a--b", "x_"])
    def test_valid_values(self, value):
        assert validate_cookie_value(value) is True

    def test_delimiter_takes_precedence_over_chars(self):
        result = validate_cookie_value("bad%---__")
        assert result.code == VaryCacheErrorCode.CANNOT_USE_DELIMITER

    @pytest.mark.parametrize("value", ["--", "--_x", "x_--"])
    def test_rejects_values_that_form_a_delimiter_when_serialized(self, value):
        result = validate_cookie_value(value)
        assert result.code == VaryCacheErrorCode.CANNOT_USE_DELIMITER

    def test_non_string_is_invalid(self):
        result = validate_cookie_value(42)
        assert result.code == VaryCacheErrorCode.INVALID_CHARS

    def test_error_is_falsy(self):
        assert not validate_cookie_value("nope%")


class TestSerialize:
    def test_empty(self):
        assert serialize({}, False) == ""

    def test_single_group(self):
        assert serialize({"dev-group": "yes"}) == f"dev-group{VALUE_SEPARATOR}yes"

    def test_preserves_insertion_order(self):
        value = serialize({"b": "1", "a": "2"})
        assert value == f"b{VALUE_SEPARATOR}1{GROUP_SEPARATOR}a{VALUE_SEPARATOR}2"

    def test_nocache_only(self):
        assert serialize({}, True) == NOCACHE_TOKEN

    def test_nocache_leads(self):
        value = serialize({"dev-group": ""}, True)
        assert value == f"{NOCACHE_TOKEN}{GROUP_SEPARATOR}dev-group{VALUE_SEPARATOR}"


class TestParse:
    def test_known_cookie(self):
        assert parse("dev-group_--_yes") == ({"dev-group": "yes"}, False)

    def test_empty_segment(self):
        assert parse("dev-group_--_") == ({"dev-group": ""}, False)

    def test_multiple_groups(self):
        groups, nocache = parse("dev-group_--_yes---__design-group_--_0")
        assert groups == {"dev-group": "yes", "design-group": "0"}
        assert list(groups) == ["dev-group", "design-group"]
        assert nocache is False

    def test_nocache_token(self):
        assert parse("nocache") == ({}, True)
        assert parse("nocache---__dev-group_--_yes") == ({"dev-group": "yes"}, True)

    def test_nocache_token_only_in_first_position(self):
        assert parse("dev-group_--_yes---__nocache") == ({"dev-group": "yes"}, False)

    @pytest.mark.parametrize("raw", [None, "", "garbage", "a_--_b_--_c", "%%%", 12])
    def test_malformed_input_degrades_to_empty(self, raw):
        assert parse(raw) == ({}, False)

    def test_skips_bad_chunks_keeps_good_ones(self):
        groups, _ = parse("junk---__dev-group_--_yes---__bad%_--_x---__a_--_b_--_c")
        assert groups == {"dev-group": "yes"}


class TestRoundTrip:
    @pytest.mark.parametrize(
        "groups,nocache",
        [
            ({}, False),
            ({}, True),
            ({"dev-group": ""}, False),
            ({"dev-group": "yes", "design-group": "0"}, True),
            ({"x_": "-_", "a--b": "c-", "-": "_"}, False),
        ],
    )
    def test_parse_inverts_serialize(self, groups, nocache):
        for name, value in groups.items():
            assert validate_cookie_value(name) is True
            assert validate_cookie_value(value) is True

        assert parse(serialize(groups, nocache)) == (groups, nocache)
