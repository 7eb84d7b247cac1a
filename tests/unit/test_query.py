"""クエリ組み立てのテスト"""

from urllib.parse import parse_qsl, urlsplit

import pytest

from opencage_geocoder.features.geocoding.domain.query import (
    DEFAULT_QUERY,
    GeoQuery,
    build_params,
    build_url,
    redact_url,
    serialize_params,
)


def test_string_query_is_trimmed_into_q() -> None:
    """文字列クエリは前後の空白を除いて q に入る"""
    params = build_params("  Paris  ", "secret")
    assert params == {"q": "Paris", "limit": 1, "pretty": 0, "no_annotations": 1, "key": "secret"}


def test_missing_key_is_omitted() -> None:
    assert "key" not in build_params("Paris", None)
    assert "key" not in build_params("Paris", "")


def test_caller_values_override_defaults_and_key() -> None:
    params = build_params({"q": "Berlin", "limit": 5, "key": "override", "language": "de"}, "secret")
    assert params["limit"] == 5
    assert params["key"] == "override"
    assert params["language"] == "de"
    assert params["pretty"] == DEFAULT_QUERY["pretty"]


def test_default_query_is_not_mutated() -> None:
    build_params({"q": "Berlin", "limit": 9}, "secret")
    assert dict(DEFAULT_QUERY) == {"q": "", "limit": 1, "pretty": 0, "no_annotations": 1}


def test_geo_query_sends_only_set_fields() -> None:
    params = build_params(GeoQuery(q="Tokyo", countrycode="jp", no_annotations=0))
    assert params == {"q": "Tokyo", "limit": 1, "pretty": 0, "no_annotations": 0, "countrycode": "jp"}


def test_serialization_order_is_insertion_order() -> None:
    params = build_params({"q": "x", "proximity": "1,2"}, "k")
    assert serialize_params(params) == "q=x&limit=1&pretty=0&no_annotations=1&key=k&proximity=1%2C2"


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Champs-Élysées", "Champs-%C3%89lys%C3%A9es"),
        ("a b&c=d", "a%20b%26c%3Dd"),
        ("it's (ok)!*~", "it's%20(ok)!*~"),
        ("51.95,7.54", "51.95%2C7.54"),
    ],
)
def test_values_are_encoded_like_encode_uri_component(value: str, expected: str) -> None:
    assert serialize_params({"q": value}) == f"q={expected}"


def test_keys_are_encoded_and_booleans_become_ints() -> None:
    assert serialize_params({"a b": True, "c": False, "d": None}) == "a%20b=1&c=0"


def test_build_url_round_trips_parameter_set() -> None:
    params = build_params({"q": "Köln", "bounds": "6.8,50.8,7.1,51.0"}, "secret")
    url = build_url("https://api.example.com/geocode/v1/json", params)

    split = urlsplit(url)
    assert f"{split.scheme}://{split.netloc}{split.path}" == "https://api.example.com/geocode/v1/json"
    assert dict(parse_qsl(split.query)) == {k: str(v) for k, v in params.items()}


def test_empty_query_is_still_serialized() -> None:
    assert build_url("http://h/p", build_params("")).startswith("http://h/p?q=&limit=1")


def test_redact_url_hides_key() -> None:
    url = "https://h/p?q=Paris&key=abc123&limit=1"
    assert redact_url(url) == "https://h/p?q=Paris&key=***&limit=1"
    assert redact_url("https://h/p?key=abc") == "https://h/p?key=***"
    assert redact_url("https://h/p?q=monkey=1") == "https://h/p?q=monkey=1"
