"""Tests for request-scoped log context."""

from walletauth.logging import (
    add_request_context,
    bind_auth_context,
    clear_request_context,
    get_request_id,
    set_request_context,
)


class TestRequestContext:
    def setup_method(self):
        clear_request_context()

    def teardown_method(self):
        clear_request_context()

    def test_context_added_to_events(self):
        set_request_context("req-1", path="/me", method="GET")
        bind_auth_context(user_id="user-1", wallet_id="wallet-1")

        event = add_request_context(None, "info", {"event": "x"})

        assert event == {
            "event": "x",
            "request_id": "req-1",
            "path": "/me",
            "method": "GET",
            "user_id": "user-1",
            "wallet_id": "wallet-1",
        }

    def test_explicit_fields_win(self):
        bind_auth_context(user_id="from-context")

        event = add_request_context(None, "info", {"event": "x", "user_id": "explicit"})

        assert event["user_id"] == "explicit"

    def test_unset_values_omitted(self):
        set_request_context("req-2")

        event = add_request_context(None, "info", {"event": "x"})

        assert event == {"event": "x", "request_id": "req-2"}
        assert get_request_id() == "req-2"

    def test_clear(self):
        set_request_context("req-3", path="/me")
        clear_request_context()

        assert add_request_context(None, "info", {"event": "x"}) == {"event": "x"}
