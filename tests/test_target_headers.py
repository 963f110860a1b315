import pytest

from core.exceptions import InvalidTargetError
from core.headers import HeaderBuilder, headers_for_log
from core.target import TargetResolver

DEFAULT = "https://default.example.com"


@pytest.fixture
def resolver() -> TargetResolver:
    return TargetResolver(DEFAULT, "X-Target-URL")


def test_resolve_uses_header_case_insensitively(resolver):
    decision = resolver.resolve({"x-target-url": " https://erp.example.com/ "})

    assert decision.origin == "https://erp.example.com"
    assert decision.from_header


def test_resolve_falls_back_to_default(resolver):
    assert resolver.resolve({}).origin == DEFAULT
    assert not resolver.resolve({"X-Target-URL": "   "}).from_header


@pytest.mark.parametrize("value", ["not-a-url", "ftp://erp.example.com", "https://", "//erp.example.com"])
def test_resolve_rejects_malformed_targets(resolver, value):
    with pytest.raises(InvalidTargetError):
        resolver.resolve({"X-Target-URL": value})


def test_upstream_url_keeps_api_prefix(resolver):
    url = resolver.upstream_url("https://erp.example.com", "/api/resource/Customer", "limit=5")

    assert url == "https://erp.example.com/api/resource/Customer?limit=5"


def test_upstream_url_without_query(resolver):
    assert resolver.upstream_url("http://localhost:8000", "api/method/ping") == (
        "http://localhost:8000/api/method/ping"
    )


def test_forward_headers_drop_target_and_host():
    builder = HeaderBuilder("X-Target-URL")
    inbound = [
        (b"host", b"localhost:3001"),
        (b"x-target-url", b"https://erp.example.com"),
        (b"authorization", b"token a:b"),
        (b"content-type", b"application/json"),
        (b"content-length", b"12"),
        (b"x-anything", b"else"),
    ]

    forwarded = builder.build_forward_headers(inbound)

    assert forwarded == [
        (b"authorization", b"token a:b"),
        (b"content-type", b"application/json"),
        (b"content-length", b"12"),
        (b"x-anything", b"else"),
    ]


def test_forward_headers_keep_repeats_and_raw_bytes():
    builder = HeaderBuilder()
    inbound = [
        (b"X-Forwarded-For", b"10.0.0.1"),
        (b"X-Target-URL", b"https://erp.example.com"),
        (b"X-Forwarded-For", b"10.0.0.2"),
        (b"x-note", "café".encode()),
    ]

    forwarded = builder.build_forward_headers(inbound)

    assert forwarded == [
        (b"X-Forwarded-For", b"10.0.0.1"),
        (b"X-Forwarded-For", b"10.0.0.2"),
        (b"x-note", "café".encode()),
    ]


def test_forward_headers_drop_content_length_with_body():
    builder = HeaderBuilder()

    forwarded = builder.build_forward_headers(
        [(b"Content-Length", b"3"), (b"Accept", b"*/*")], drop_body=True
    )

    assert forwarded == [(b"Accept", b"*/*")]


def test_headers_for_log_joins_repeats():
    merged = headers_for_log([(b"Accept", b"text/html"), (b"accept", b"application/json")])

    assert merged == {"accept": "text/html, application/json"}


def test_cors_headers_name_custom_target_header():
    headers = HeaderBuilder("X-Erp-Origin").cors_headers()

    assert headers["Access-Control-Allow-Origin"] == "*"
    assert headers["Access-Control-Allow-Headers"].endswith("X-Erp-Origin")
