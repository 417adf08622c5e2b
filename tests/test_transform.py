import pytest

from core.transform import build_upstream_query, build_upstream_url, serialize_body

BASE = "https://generativelanguage.googleapis.com"


class TestBuildUpstreamQuery:
    def test_drops_routing_keys_and_keeps_multi_values(self):
        query = [("path", "a"), ("path", "b"), ("foo", "bar"), ("baz", "1"), ("baz", "2")]
        params = build_upstream_query(query, {"path"}, "secret")

        assert params.multi_items() == [
            ("foo", "bar"),
            ("baz", "1"),
            ("baz", "2"),
            ("key", "secret"),
        ]
        assert "path" not in params

    def test_client_key_is_overwritten(self):
        params = build_upstream_query([("key", "client"), ("key", "other")], {"path"}, "secret")
        assert params.get_list("key") == ["secret"]

    def test_empty_query_gets_only_key(self):
        assert build_upstream_query([], {"path"}, "secret").multi_items() == [("key", "secret")]


class TestSerializeBody:
    @pytest.mark.parametrize("method", ["GET", "HEAD", "get"])
    def test_bodyless_methods_never_forward(self, method):
        assert serialize_body(method, '{"a": 1}') is None

    def test_string_forwarded_as_is(self):
        assert serialize_body("POST", '{"a":1}') == '{"a":1}'

    def test_bytes_forwarded_as_is(self):
        assert serialize_body("PUT", b"raw") == b"raw"

    def test_objects_serialised_to_json(self):
        assert serialize_body("POST", {"contents": [1, 2]}) == '{"contents": [1, 2]}'

    @pytest.mark.parametrize("body", [None, "", b""])
    def test_empty_body_is_absent(self, body):
        assert serialize_body("POST", body) is None


class TestBuildUpstreamUrl:
    def test_with_query(self):
        params = build_upstream_query([], set(), "k")
        url = build_upstream_url(BASE, "v1beta/models", params)
        assert url == f"{BASE}/v1beta/models?key=k"

    def test_trailing_slash_on_base(self):
        params = build_upstream_query([], set(), "k")
        assert build_upstream_url(BASE + "/", "v1beta", params) == f"{BASE}/v1beta?key=k"

    def test_values_are_url_encoded(self):
        params = build_upstream_query([("q", "a b&c")], set(), "s")
        assert build_upstream_url(BASE, "v1beta", params) == f"{BASE}/v1beta?q=a+b%26c&key=s"

    def test_path_delimiters_are_escaped(self):
        params = build_upstream_query([], set(), "s")
        url = build_upstream_url(BASE, "v1beta/models/x#frag?y%z", params)
        assert url == f"{BASE}/v1beta/models/x%23frag%3Fy%25z?key=s"

    def test_path_keeps_colon_and_slash(self):
        params = build_upstream_query([], set(), "s")
        url = build_upstream_url(BASE, "v1beta/models/gemini-2.5-flash:generateContent", params)
        assert url == f"{BASE}/v1beta/models/gemini-2.5-flash:generateContent?key=s"

    def test_multi_valued_order(self):
        query = [("path", "a"), ("foo", "bar"), ("baz", "1"), ("baz", "2")]
        params = build_upstream_query(query, {"path"}, "secret")
        url = build_upstream_url(BASE, "a", params)
        assert url == f"{BASE}/a?foo=bar&baz=1&baz=2&key=secret"
