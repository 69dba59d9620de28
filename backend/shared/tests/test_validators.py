import pytest

from shared.validators import parse_string_list


class TestParseStringList:
    def test_json_array_string(self):
        assert parse_string_list('["http://a.com","http://b.com"]') == ["http://a.com", "http://b.com"]

    def test_comma_separated_with_whitespace(self):
        assert parse_string_list(" http://a.com , http://b.com ") == ["http://a.com", "http://b.com"]

    def test_skips_empty_segments(self):
        assert parse_string_list("http://a.com,,http://b.com,") == ["http://a.com", "http://b.com"]

    def test_passthrough_list(self):
        origins = ["http://a.com"]
        assert parse_string_list(origins) == origins

    @pytest.mark.parametrize("value", ["", ",", "[]", []])
    def test_empty_raises_by_default(self, value):
        with pytest.raises(ValueError, match="must not be empty"):
            parse_string_list(value)

    @pytest.mark.parametrize("value", ["", ",,", "[]", []])
    def test_empty_allowed_when_requested(self, value):
        assert parse_string_list(value, allow_empty=True) == []

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError, match="Invalid JSON array"):
            parse_string_list("[not valid json")

    def test_json_non_string_items_raise(self):
        with pytest.raises(ValueError, match="must be an array of strings"):
            parse_string_list('["http://a.com", 123]')
