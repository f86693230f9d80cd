"""
Tests for error parsing and user-facing error descriptions.
"""

import pytest

from query_sync.errors import (
    DEFAULT_USER_MESSAGE,
    RemoteError,
    TransportError,
    describe_error,
)


class TestRemoteErrorFromPayload:
    """Test RemoteError.from_payload with the supported body shapes."""

    def test_structured_error(self):
        payload = {"error": {"message": "violates check", "code": "23514", "details": "mood > 5"}}

        error = RemoteError.from_payload(payload, status=400)

        assert error.message == "violates check"
        assert error.code == "23514"
        assert error.details == "mood > 5"
        assert error.status == 400

    def test_error_string(self):
        error = RemoteError.from_payload({"error": "Unauthorized"}, status=401)

        assert error.message == "Unauthorized"
        assert error.code is None

    def test_message_body(self):
        error = RemoteError.from_payload({"message": "Not found", "code": "PGRST116"}, status=404)

        assert error.message == "Not found"
        assert error.code == "PGRST116"

    @pytest.mark.parametrize("payload", [None, [], {"unexpected": True}])
    def test_unknown_shape(self, payload):
        error = RemoteError.from_payload(payload, status=500)

        assert error.message == "Request failed with status 500"

    def test_to_dict(self):
        error = RemoteError("boom", code="X1", status=500)

        assert error.to_dict() == {
            "message": "boom",
            "code": "X1",
            "details": None,
            "hint": None,
            "status": 500,
        }


class TestDescribeError:
    """Test describe_error."""

    def test_known_code(self):
        described = describe_error(RemoteError("duplicate key value", code="23505"))

        assert described.user_message == "This data already exists."
        assert described.technical_message == "duplicate key value"
        assert described.error_code == "23505"

    def test_known_code_in_dict(self):
        described = describe_error({"code": "PGRST116", "message": "row not found"})

        assert described.user_message == "You do not have access to this data."

    def test_hint_overrides_action(self):
        described = describe_error(RemoteError("bad", code="22P02", hint="Use a UUID"))

        assert described.action == "Use a UUID"

    def test_unknown_code_uses_message(self):
        described = describe_error(RemoteError("Something broke", code="XX000"))

        assert described.user_message == "Something broke"
        assert described.error_code == "XX000"

    def test_transport_error(self):
        described = describe_error(TransportError("GET /api/tasks failed: timeout"))

        assert described.user_message == "The server could not be reached."

    def test_plain_exception_without_message(self):
        described = describe_error(ValueError())

        assert described.user_message == DEFAULT_USER_MESSAGE

    def test_string_and_none(self):
        assert describe_error("Try later").user_message == "Try later"
        assert describe_error(None).user_message == DEFAULT_USER_MESSAGE

    def test_context_prefix(self):
        described = describe_error(RemoteError("x", code="23505"), context="task-save")

        assert described.user_message == "The task could not be saved. This data already exists."

    def test_unknown_context_is_ignored(self):
        assert describe_error("Oops", context="unknown").user_message == "Oops"
