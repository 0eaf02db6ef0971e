"""Regression tests for application route registration."""
from fastapi.routing import APIRoute

from app.main import app


def test_assistant_route_registered_once() -> None:
    """Ensure the assistant endpoint is not mounted multiple times."""
    assistant_routes = [
        route
        for route in app.routes
        if isinstance(route, APIRoute) and route.path == "/assistant/execute" and "POST" in route.methods
    ]
    assert len(assistant_routes) == 1
