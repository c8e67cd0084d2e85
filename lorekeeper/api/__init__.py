"""
HTTP surface: the route table, dispatcher and ASGI application.
"""

from lorekeeper.api.router import Call, Response, Route, Router, Stage

__all__ = ["Call", "Response", "Route", "Router", "Stage"]
