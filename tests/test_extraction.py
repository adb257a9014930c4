"""Response-value extraction: path lookups and request chaining."""

import pytest

from reqx.errors import ExecutionError, ExtractionError
from reqx.filters import extract_value, parse_path, stringify
from reqx.interpreter import execute
from reqx.lexer import tokenize
from reqx.parser import parse
from tests.conftest import RecordingTransport, make_response

LOGIN_THEN_PROFILE = """
POST https://api.com/login
{ "user": "test" }

@token = token
@uid = user.id

###

GET https://api.com/user/{{uid}}
Authorization: Bearer {{token}}
"""


def load(text):
    return parse(tokenize(text))


# ── Path parsing ──────────────────────────────────────────────────────────


class TestParsePath:
    def test_dotted(self):
        assert parse_path("user.profile.name") == ["user", "profile", "name"]

    def test_indices(self):
        assert parse_path("items[0].id") == ["items", 0, "id"]
        assert parse_path("items.2") == ["items", 2]
        assert parse_path("items[-1]") == ["items", -1]

    def test_iteration_and_slices(self):
        assert parse_path("data[].id") == ["data", None, "id"]
        assert parse_path("data[1:3]") == ["data", (1, 3)]
        assert parse_path("data[:-1]") == ["data", (None, -1)]

    def test_bracket_key(self):
        assert parse_path("headers[Content-Type]") == ["headers", "Content-Type"]

    def test_body_prefix_is_optional(self):
        assert parse_path("body.token") == parse_path("token") == ["token"]


# ── Value lookup ──────────────────────────────────────────────────────────


class TestExtractValue:
    DATA = {
        "token": "secret-123",
        "user": {"id": 42, "Name": "Ada", "active": True, "manager": None},
        "items": [{"id": 1}, {"id": 2}, {"id": 3}],
    }

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("token", "secret-123"),
            ("user.id", 42),
            ("user.name", "Ada"),
            ("user.manager", None),
            ("items[0].id", 1),
            ("items.1.id", 2),
            ("items[-1].id", 3),
            ("items[].id", [1, 2, 3]),
            ("items[1:].id", [2, 3]),
        ],
    )
    def test_found(self, path, expected):
        assert extract_value(self.DATA, path) == (True, expected)

    @pytest.mark.parametrize(
        "path",
        ["missing", "user.missing", "items[9].id", "token.length", "user[0]"],
    )
    def test_not_found(self, path):
        found, _ = extract_value(self.DATA, path)
        assert not found

    def test_null_is_found(self):
        # a JSON null is a value, not a missing key
        assert extract_value({"a": None}, "a") == (True, None)


class TestStringify:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("text", "text"),
            (42, "42"),
            (1.5, "1.5"),
            (True, "true"),
            (None, "null"),
            ({"a": 1}, '{"a":1}'),
            ([1, "x"], '[1,"x"]'),
        ],
    )
    def test_coercion(self, value, expected):
        assert stringify(value) == expected


# ── Chaining through the interpreter ──────────────────────────────────────


class TestChaining:
    def test_login_token_feeds_next_request(self):
        transport = RecordingTransport(
            responses={
                "/login": make_response(body={"token": "secret-123", "user": {"id": 42}}),
            },
            default=make_response(body="OK"),
        )
        execute(transport, load(LOGIN_THEN_PROFILE))

        assert len(transport.calls) == 2
        assert transport.calls[0]["url"] == "https://api.com/login"
        assert transport.calls[0]["body"] == '{ "user": "test" }'
        assert transport.calls[1]["url"] == "https://api.com/user/42"
        assert ("Authorization", "Bearer secret-123") in transport.calls[1]["headers"]

    def test_extracted_value_overrides_document_variable(self):
        text = "@token = stale\nPOST https://api.com/login\n\n{}\n\n@token = token\n\n###\n\nGET https://api.com/me?t={{token}}"
        transport = RecordingTransport(
            responses={"/login": make_response(body={"token": "fresh"})},
        )
        execute(transport, load(text))
        assert transport.calls[1]["url"] == "https://api.com/me?t=fresh"

    def test_missing_path_fails_the_run(self):
        transport = RecordingTransport(
            responses={"/login": make_response(status=401, body={"error": "Unauthorized"})},
        )
        with pytest.raises(ExtractionError, match="path 'token' not found") as exc:
            execute(transport, load(LOGIN_THEN_PROFILE))
        assert exc.value.line == 5
        assert len(transport.calls) == 1

    def test_non_json_body_fails_the_run(self):
        transport = RecordingTransport(default=make_response(body="<html>nope</html>"))
        with pytest.raises(ExecutionError, match="not valid JSON"):
            execute(transport, load(LOGIN_THEN_PROFILE))

    def test_requests_without_rules_ignore_the_body(self):
        transport = RecordingTransport(default=make_response(body="not json"))
        exchanges = execute(transport, load("GET https://a.com"))
        assert exchanges[0].response.body == "not json"

    def test_dry_run_keeps_placeholders_for_extracted_names(self, transport):
        exchanges = execute(transport, load(LOGIN_THEN_PROFILE), dry_run=True)
        assert transport.calls == []
        assert exchanges[1].resolved.url == "https://api.com/user/{{uid}}"
        assert exchanges[1].resolved.headers == [("Authorization", "Bearer {{token}}")]

    def test_run_of_only_the_dependent_request_fails(self, transport):
        # extraction only happens when the extracting request runs
        with pytest.raises(ExecutionError, match="Undefined variable: uid"):
            execute(transport, load(LOGIN_THEN_PROFILE), request_index=2)
