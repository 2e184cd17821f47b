"""Tests for qualified remote tool names."""

from switchboard.remote.naming import qualify, sanitize


def test_qualify_plain_names():
    assert qualify("search", "lookup") == "mcp_search_lookup"


def test_sanitize_replaces_unsafe_characters():
    assert sanitize("my server.v2/x") == "my_server_v2_x"


def test_sanitize_keeps_hyphen_and_underscore():
    assert sanitize("a-b_c") == "a-b_c"


def test_qualify_is_deterministic():
    assert qualify("weather api", "get.forecast") == qualify("weather api", "get.forecast")
    assert qualify("weather api", "get.forecast") == "mcp_weather_api_get_forecast"


def test_different_inputs_can_collide():
    assert qualify("a.b", "c") == qualify("a_b", "c")

