"""
Tests for route matching and the dispatch pipeline.
"""

import asyncio
import json
import logging
import time

import pytest

from lorekeeper.api.router import Response, Route
from lorekeeper.core.errors import RequestAborted

from tests.conftest import bearer


def noop(call):
    return Response(200)


def body(payload):
    """Body provider returning a JSON payload."""
    async def provide():
        return json.dumps(payload).encode()
    return provide


def untouchable_body():
    """Body provider that fails the test if it is ever read."""
    async def provide():
        raise AssertionError("body must not be read")
    return provide


async def empty_body():
    return b""


# =============================================================================
# Route Matching Tests
# =============================================================================


class TestRouteMatch:
    def test_param_binding(self):
        route = Route("GET", "/characters/:id", noop)
        assert route.match("GET", "/characters/42") == {"id": "42"}

    def test_param_requires_segment(self):
        route = Route("GET", "/characters/:id", noop)
        assert route.match("GET", "/characters/") is None
        assert route.match("GET", "/characters") is None
        assert route.match("GET", "/characters/42/extra") is None

    def test_literal_and_method(self):
        route = Route("GET", "/characters", noop)
        assert route.match("GET", "/characters") == {}
        assert route.match("POST", "/characters") is None
        assert route.match("GET", "/characters/") is None
        assert route.match("GET", "/heroes") is None

    def test_first_match_wins(self, state):
        route, params = state.router.resolve("GET", "/characters/7")
        assert route.pattern == "/characters/:id"
        assert params == {"id": "7"}


# =============================================================================
# Dispatch Pipeline Tests
# =============================================================================


class TestDispatch:
    @pytest.mark.asyncio
    async def test_unknown_route(self, state, user_token):
        response = await state.router.dispatch("GET", "/dragons", bearer(user_token), empty_body)
        assert response.status_code == 404
        assert response.body == {"message": "Route not found"}

    @pytest.mark.asyncio
    async def test_auth_failure_never_reads_body(self, state):
        response = await state.router.dispatch(
            "POST", "/characters", {}, untouchable_body(),
        )
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_authorization_failure_never_reads_body(self, state, user_token):
        response = await state.router.dispatch(
            "POST", "/auth/revoke", bearer(user_token), untouchable_body(),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_invalid_json_is_bad_request(self, state, user_token):
        async def garbage():
            return b"{not json"
        
        response = await state.router.dispatch("POST", "/characters", bearer(user_token), garbage)
        assert response.status_code == 400
        assert state.storage.characters.list() == []

    @pytest.mark.asyncio
    async def test_empty_body_is_bad_request_when_shape_declared(self, state, user_token):
        response = await state.router.dispatch("POST", "/characters", bearer(user_token), empty_body)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_client_disconnect_abandons_pipeline(self, state, user_token):
        async def disconnected():
            raise RequestAborted()
        
        response = await state.router.dispatch("POST", "/characters", bearer(user_token), disconnected)
        assert response.status_code == 400
        assert state.storage.characters.list() == []

    @pytest.mark.asyncio
    async def test_slow_body_times_out(self, state, user_token):
        async def stalled():
            await asyncio.sleep(5)
            return b'{"name": "Aragorn", "lastName": "Elessar"}'
        
        response = await state.router.dispatch("POST", "/characters", bearer(user_token), stalled)
        assert response.status_code == 400
        assert state.storage.characters.list() == []

    @pytest.mark.asyncio
    async def test_validation_failure(self, state, user_token):
        response = await state.router.dispatch(
            "POST", "/characters", bearer(user_token), body({"name": "Al"}),
        )
        assert response.status_code == 422
        fields = {issue["field"] for issue in response.body["message"]}
        assert fields == {"name", "lastName"}

    @pytest.mark.asyncio
    async def test_create_executes_handler(self, state, user_token):
        response = await state.router.dispatch(
            "POST", "/characters", bearer(user_token),
            body({"id": 5000, "name": "Aragorn", "lastName": "Elessar"}),
        )
        assert response.status_code == 201
        assert response.body["name"] == "Aragorn"
        assert response.body["lastName"] == "Elessar"
        assert response.body["id"] != 5000

    @pytest.mark.asyncio
    async def test_handler_crash_still_responds(self, state, user_token):
        def explode(call):
            raise RuntimeError("boom")
        
        state.router.add("GET", "/explode", explode)
        response = await state.router.dispatch("GET", "/explode", bearer(user_token), empty_body)
        assert response.status_code == 500
        assert response.body == {"message": "Internal server error"}

    @pytest.mark.asyncio
    async def test_method_is_case_insensitive(self, state, user_token):
        response = await state.router.dispatch("get", "/characters", bearer(user_token), empty_body)
        assert response.status_code == 200
        assert response.body == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", [
        b'{"name": ' + b"1" * 5000 + b', "lastName": "Elessar"}',
        b"[" * 100_000 + b"]" * 100_000,
    ])
    async def test_unparseable_json_is_bad_request(self, state, user_token, raw):
        async def provide():
            return raw
        
        response = await state.router.dispatch("POST", "/characters", bearer(user_token), provide)
        assert response.status_code == 400
        assert response.body == {"message": "Request body is not valid JSON"}
        assert state.storage.characters.list() == []

    @pytest.mark.asyncio
    async def test_rejection_log_names_the_route(self, state, caplog):
        caplog.set_level(logging.INFO, logger="lorekeeper.api.router")
        
        await state.router.dispatch("GET", "/characters/1", {}, empty_body)
        
        assert "(get_character) at authenticating: missing_credentials" in caplog.text

    @pytest.mark.asyncio
    async def test_password_check_does_not_block_other_requests(self, state, user_token, monkeypatch):
        state.storage.users.create("frodo@shire.org", "precious")
        
        def slow_verify(password, stored):
            time.sleep(0.3)
            return False
        
        monkeypatch.setattr("lorekeeper.storage.local.verify_password", slow_verify)
        finished = []
        
        async def login():
            response = await state.router.dispatch(
                "POST", "/auth/login", {},
                body({"email": "frodo@shire.org", "password": "precious"}),
            )
            finished.append("login")
            return response
        
        async def listing():
            await asyncio.sleep(0.05)
            response = await state.router.dispatch("GET", "/characters", bearer(user_token), empty_body)
            finished.append("list")
            return response
        
        login_response, list_response = await asyncio.gather(login(), listing())
        
        assert finished == ["list", "login"]
        assert login_response.status_code == 401
        assert list_response.status_code == 200
