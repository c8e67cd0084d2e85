"""
Router and dispatcher - the request admission pipeline.

Every request goes through the same stages:

    Received -> Authenticating -> Authorizing -> BodyPending
             -> Validating -> Executing -> Responded

Any stage before Executing may reject the request instead. Either way,
dispatch() produces exactly one Response. Resource mutations are plain
synchronous calls, so one cannot be interleaved with another request,
and a body that never fully arrives never reaches one. A handler may be
a coroutine function when it has CPU-bound work to push off the loop.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel

from lorekeeper.auth.context import Identity
from lorekeeper.auth.policies import AuthorizationGuard, IdentityVerifier
from lorekeeper.core.errors import (
    BadRequest,
    LorekeeperError,
    RouteNotFound,
)
from lorekeeper.core.models import Role
from lorekeeper.core.validation import validate

logger = logging.getLogger(__name__)

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

BodyProvider = Callable[[], Awaitable[bytes]]


# =============================================================================
# Request / Response types
# =============================================================================


class Stage(str, Enum):
    """Where a request is in the admission pipeline."""

    RECEIVED = "received"
    AUTHENTICATING = "authenticating"
    AUTHORIZING = "authorizing"
    BODY_PENDING = "body_pending"
    VALIDATING = "validating"
    EXECUTING = "executing"
    RESPONDED = "responded"
    REJECTED = "rejected"


@dataclass
class Response:
    """Transport-neutral response produced by the dispatcher."""

    status_code: int
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_error(cls, error: LorekeeperError) -> Response:
        return cls(
            status_code=error.status_code,
            body={"message": error.message},
            headers=dict(error.headers),
        )


@dataclass
class Call:
    """Everything a handler gets to see about its request."""

    params: dict[str, str] = field(default_factory=dict)
    identity: Identity | None = None
    token: str | None = None
    payload: Any = None


Handler = Callable[[Call], "Response | Awaitable[Response]"]


# =============================================================================
# Routes
# =============================================================================


def split_path(path: str) -> list[str]:
    return path.split("/")


@dataclass(frozen=True)
class Route:
    """
    A (method, path pattern) pair bound to a handler.

    Pattern segments starting with ``:`` bind the matching path segment
    by name, e.g. ``/characters/:id``. ``roles`` empty means any
    authenticated caller; ``authenticated=False`` skips auth entirely.
    """

    method: str
    pattern: str
    handler: Handler
    roles: frozenset[Role] = frozenset()
    authenticated: bool = True
    shape: type[BaseModel] | None = None
    name: str = ""

    def match(self, method: str, path: str) -> dict[str, str] | None:
        """Return the bound path params, or None if this route doesn't match."""
        if method != self.method:
            return None

        expected = split_path(self.pattern)
        actual = split_path(path)
        if len(expected) != len(actual):
            return None

        params: dict[str, str] = {}
        for want, got in zip(expected, actual):
            if want.startswith(":"):
                if not got:
                    return None
                params[want[1:]] = got
            elif want != got:
                return None
        return params


# =============================================================================
# Router
# =============================================================================


class Router:
    """
    Ordered route table plus the dispatch pipeline.

    Routes are registered at startup and matched in registration order;
    the first match wins.
    """

    def __init__(
        self,
        verifier: IdentityVerifier,
        guard: AuthorizationGuard | None = None,
        body_timeout: float | None = None,
    ):
        self._verifier = verifier
        self._guard = guard or AuthorizationGuard()
        self._body_timeout = body_timeout
        self._routes: list[Route] = []

    def add(
        self,
        method: str,
        pattern: str,
        handler: Handler,
        *,
        roles: Iterable[Role] = (),
        authenticated: bool = True,
        shape: type[BaseModel] | None = None,
    ) -> Route:
        """Register a route."""
        route = Route(
            method=method.upper(),
            pattern=pattern,
            handler=handler,
            roles=frozenset(roles),
            authenticated=authenticated,
            shape=shape,
            name=getattr(handler, "__name__", ""),
        )
        self._routes.append(route)
        return route

    def resolve(self, method: str, path: str) -> tuple[Route, dict[str, str]]:
        """Find the first route matching the request. Raises RouteNotFound."""
        for route in self._routes:
            params = route.match(method, path)
            if params is not None:
                return route, params
        raise RouteNotFound()

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def dispatch(
        self,
        method: str,
        path: str,
        headers: Mapping[str, str],
        body_provider: BodyProvider,
    ) -> Response:
        """
        Run a request through the pipeline and produce its response.

        Never raises: every failure becomes an error response.
        """
        method = method.upper()
        stage = Stage.RECEIVED
        route: Route | None = None
        try:
            route, params = self.resolve(method, path)
            call = Call(params=params)

            if route.authenticated:
                stage = Stage.AUTHENTICATING
                call.identity, call.token = self._verifier.authenticate_with_token(headers)

                if route.roles:
                    stage = Stage.AUTHORIZING
                    self._guard.authorize(call.identity, route.roles)

            if method in BODY_METHODS:
                stage = Stage.BODY_PENDING
                call.payload = await self._read_json(body_provider, required=route.shape is not None)

            if route.shape is not None:
                stage = Stage.VALIDATING
                call.payload = validate(route.shape, call.payload)

            stage = Stage.EXECUTING
            response = route.handler(call)
            if inspect.isawaitable(response):
                response = await response

        except LorekeeperError as e:
            logger.info(
                "Rejected %s %s (%s) at %s: %s",
                method, path, route.name if route else "-", stage.value, e.code,
            )
            return Response.from_error(e)
        except Exception:
            logger.exception("Unhandled error in %s %s at %s", method, path, stage.value)
            return Response(status_code=500, body={"message": "Internal server error"})

        logger.debug("Responded %s %s -> %s", method, path, response.status_code)
        return response

    async def _read_json(self, body_provider: BodyProvider, required: bool) -> Any:
        """Await the full body and decode it as JSON."""
        try:
            if self._body_timeout is not None:
                raw = await asyncio.wait_for(body_provider(), timeout=self._body_timeout)
            else:
                raw = await body_provider()
        except asyncio.TimeoutError as e:
            raise BadRequest("Timed out reading request body") from e

        if not raw or not raw.strip():
            if required:
                raise BadRequest("Request body is empty")
            return None

        try:
            return json.loads(raw)
        except (UnicodeDecodeError, ValueError, RecursionError) as e:
            raise BadRequest("Request body is not valid JSON") from e
