"""Assembly of the OpenAPI document served at ``/api/openapi.json``.

The base document comes from FastAPI and covers the plain REST routes;
backend methods are added on top, one ``POST`` operation per action URL.
"""

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from planets_admin.config import Settings
from planets_admin.openapi.infer import infer_request_schema, infer_response_schema
from planets_admin.rpc.registry import backend_methods

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    "400": {"description": "Bad Request"},
    "401": {"description": "Unauthorized"},
    "403": {"description": "Forbidden"},
    "500": {"description": "Internal Server Error"},
}

BEARER_AUTH = {"type": "http", "scheme": "bearer"}


def _operation(controller: type, method: Any, action_url: str) -> dict:
    name = method.name
    response_schema = infer_response_schema(method, controller, name)
    return {
        "tags": [controller.__name__],
        "summary": action_url.split("/")[-1],
        "description": f"Backend method: {action_url}",
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": infer_request_schema(method, controller, name)},
            },
        },
        "responses": {
            "200": {
                "description": "Successful response",
                "content": {
                    "application/json": {
                        "schema": {
                            "type": "object",
                            "properties": {"data": response_schema},
                        },
                    },
                },
            },
            **{code: dict(resp) for code, resp in ERROR_RESPONSES.items()},
        },
        "security": [{"bearerAuth": []}],
    }


def build_document(base_doc: dict, controllers: list[type]) -> dict:
    """Add one ``POST /api/<action_url>`` path per backend method to ``base_doc``.

    Methods without an action URL are skipped. ``base_doc`` is extended in
    place and returned.
    """
    paths = base_doc.setdefault("paths", {})
    added = 0

    for controller in controllers:
        for method in backend_methods(controller):
            action_url = method.action_url
            if not action_url:
                logger.debug("Skipping %s.%s: no action URL", controller.__name__, method.name)
                continue
            paths[f"/api/{action_url}"] = {"post": _operation(controller, method, action_url)}
            added += 1

    if added:
        components = base_doc.setdefault("components", {})
        components.setdefault("securitySchemes", {})["bearerAuth"] = dict(BEARER_AUTH)

    logger.debug("Added %d backend method path(s) to the OpenAPI document", added)
    return base_doc


def build_openapi_document(app: FastAPI, controllers: list[type], settings: Settings) -> dict:
    """Generate the full document for ``app`` plus its backend methods."""
    base_doc = get_openapi(
        title=settings.api_title,
        version=settings.api_version,
        routes=app.routes,
    )
    return build_document(base_doc, controllers)
