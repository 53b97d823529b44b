import pytest
from aws_wss_signers import URI, QueryParameters, parse_endpoint
from aws_wss_signers._http import uri_encode
from aws_wss_signers.exceptions import (
    CryptoFailureError,
    DuplicateParameterKeyError,
    InvalidEndpointError,
    MalformedEndpointError,
    SigningErrorKind,
)


@pytest.mark.parametrize(
    "endpoint,expected_host,expected_path",
    [
        ("wss://example.com", "example.com", "/"),
        ("wss://example.com/", "example.com", "/"),
        ("wss://example.com/signaling", "example.com", "/signaling"),
        ("wss://example.com:8443/a/b/", "example.com:8443", "/a/b/"),
    ],
)
def test_parse_endpoint(endpoint: str, expected_host: str, expected_path: str) -> None:
    uri = parse_endpoint(endpoint)
    assert uri == URI(host=expected_host, path=expected_path)
    assert uri.scheme == "wss"
    assert uri.query is None


@pytest.mark.parametrize(
    "endpoint",
    [
        "https://example.com",
        "ws://example.com",
        "WSS://example.com",
        "example.com",
        "wss://",
        "wss:///signaling",
        "https://example.com/?x=1",
    ],
)
def test_parse_endpoint_invalid(endpoint: str) -> None:
    with pytest.raises(InvalidEndpointError) as exc_info:
        parse_endpoint(endpoint)
    assert exc_info.value.kind is SigningErrorKind.INVALID_ENDPOINT


@pytest.mark.parametrize(
    "endpoint",
    [
        "wss://host/path?x=1",
        "wss://host?",
        "wss://host/#fragment",
    ],
)
def test_parse_endpoint_malformed(endpoint: str) -> None:
    with pytest.raises(MalformedEndpointError) as exc_info:
        parse_endpoint(endpoint)
    assert exc_info.value.kind is SigningErrorKind.MALFORMED_ENDPOINT


@pytest.mark.parametrize(
    "uri,expected",
    [
        (URI(host="example.com"), "wss://example.com/"),
        (URI(host="example.com", path="/a", query="x=1&y=2"), "wss://example.com/a?x=1&y=2"),
        (URI(host="example.com:8443", query="x=%2F"), "wss://example.com:8443/?x=%2F"),
    ],
)
def test_uri_build(uri: URI, expected: str) -> None:
    assert uri.build() == expected


@pytest.mark.parametrize(
    "value,expected",
    [
        ("AZaz09-_.~", "AZaz09-_.~"),
        ("!'()*", "%21%27%28%29%2A"),
        ("a b", "a%20b"),
        ("a/b:c", "a%2Fb%3Ac"),
        ("=&+", "%3D%26%2B"),
        ("%41", "%2541"),
        ("é", "%C3%A9"),
        ("", ""),
    ],
)
def test_uri_encode(value: str, expected: str) -> None:
    assert uri_encode(value) == expected


class TestQueryParameters:
    def test_from_mapping(self) -> None:
        params = QueryParameters({"b": "2", "a": "1"})
        assert len(params) == 2
        assert params["a"] == "1"
        assert "b" in params
        assert list(params) == ["b", "a"]

    def test_from_pairs_rejects_repeated_names(self) -> None:
        with pytest.raises(DuplicateParameterKeyError) as exc_info:
            QueryParameters([("a", "1"), ("b", "2"), ("a", "3")])
        assert exc_info.value.key == "a"

    def test_names_are_case_sensitive(self) -> None:
        params = QueryParameters([("a", "1"), ("A", "2")])
        assert params["a"] == "1"
        assert params["A"] == "2"

    def test_add_rejects_existing_name(self) -> None:
        params = QueryParameters({"a": "1"})
        with pytest.raises(DuplicateParameterKeyError):
            params.add("a", "2")
        assert params["a"] == "1"

    def test_setitem_overrides(self) -> None:
        params = QueryParameters({"a": "1"})
        params["a"] = "2"
        assert params["a"] == "2"

    def test_extend(self) -> None:
        params = QueryParameters({"a": "1"})
        params.extend({"b": "2"})
        params.extend(QueryParameters({"c": "3"}))
        assert params == QueryParameters({"a": "1", "b": "2", "c": "3"})

    def test_extend_collision_merges_nothing(self) -> None:
        params = QueryParameters({"a": "1"})
        with pytest.raises(DuplicateParameterKeyError) as exc_info:
            params.extend({"b": "2", "a": "3"})
        assert exc_info.value.key == "a"
        assert params == QueryParameters({"a": "1"})

    def test_copy_is_independent(self) -> None:
        params = QueryParameters({"a": "1"})
        copied = params.copy()
        copied.add("b", "2")
        assert "b" not in params

    def test_equality_ignores_order(self) -> None:
        assert QueryParameters({"a": "1", "b": "2"}) == QueryParameters(
            [("b", "2"), ("a", "1")]
        )
        assert QueryParameters({"a": "1"}) != QueryParameters({"a": "2"})
        assert QueryParameters({"a": "1"}) != {"a": "1"}

    def test_sorted_items_use_byte_order(self) -> None:
        params = QueryParameters(
            {"b": "", "X-Amz-Date": "", "a": "", "B": "", "X-Amz-ChannelARN": ""}
        )
        assert [name for name, _ in params.sorted_items()] == [
            "B",
            "X-Amz-ChannelARN",
            "X-Amz-Date",
            "a",
            "b",
        ]

    def test_sorted_items_compare_encoded_names(self) -> None:
        # "/" sorts after "." raw, but its escape "%2F" sorts before it.
        params = QueryParameters({"a.": "1", "a/": "2"})
        assert [name for name, _ in params.sorted_items()] == ["a/", "a."]
        assert params.as_query_string() == "a%2F=2&a.=1"

    def test_unencodable_value(self) -> None:
        params = QueryParameters({"X-Amz-ClientId": "bad\udc80"})
        with pytest.raises(CryptoFailureError) as exc_info:
            params.as_query_string()
        assert exc_info.value.kind is SigningErrorKind.CRYPTO_FAILURE

    def test_as_query_string(self) -> None:
        params = QueryParameters(
            {"X-Amz-ClientId": "viewer (1)", "X-Amz-ChannelARN": "arn:aws:x/y"}
        )
        assert params.as_query_string() == (
            "X-Amz-ChannelARN=arn%3Aaws%3Ax%2Fy&X-Amz-ClientId=viewer%20%281%29"
        )

    def test_empty_query_string(self) -> None:
        assert QueryParameters().as_query_string() == ""
