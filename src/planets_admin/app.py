"""FastAPI application: planets CRUD, backend methods, images and API docs."""

import logging
import mimetypes
from pathlib import Path
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from planets_admin.auth import TokenStore, User, current_user, require_user
from planets_admin.config import Settings
from planets_admin.controllers import files
from planets_admin.controllers.files import FilesController
from planets_admin.controllers.sample import SampleController
from planets_admin.entities.planets import Planet, PlanetInput, PlanetRepository
from planets_admin.errors import (
    Forbidden,
    MethodNotFound,
    PlanetsAdminError,
    RpcArgumentError,
    StorageError,
    ValidationFailed,
)
from planets_admin.openapi.document import build_openapi_document
from planets_admin.rpc.registry import RpcDispatcher
from planets_admin.storage import ObjectStorage
from planets_admin.validation import validate_schema

logger = logging.getLogger(__name__)

CONTROLLERS: list[type] = [FilesController, SampleController]

IMAGE_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
}

IMAGE_CACHE_CONTROL = "public, max-age=31536000, immutable"


class RpcRequest(BaseModel):
    args: list[Any] = []


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def guess_content_type(filename: str) -> str:
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return IMAGE_TYPES.get(extension) or mimetypes.guess_type(filename)[0] or "application/octet-stream"


def create_app(
    settings: Settings | None = None,
    storage: ObjectStorage | None = None,
    token_store: TokenStore | None = None,
    controllers: list[type] | None = None,
) -> FastAPI:
    """Build the application.

    ``storage`` defaults to a bucket built lazily from the environment on
    the first file operation.
    """
    settings = settings or Settings.from_env()
    controllers = list(CONTROLLERS if controllers is None else controllers)

    if token_store is None:
        token_store = TokenStore(super_admin_emails=settings.super_admin_emails)
        if settings.users_file:
            token_store.load_file(Path(settings.users_file))

    if storage is not None:
        files.set_storage(storage)

    app = FastAPI(title=settings.api_title, version=settings.api_version, docs_url=None, redoc_url=None, openapi_url=None)
    app.state.settings = settings
    app.state.token_store = token_store
    app.state.planets = PlanetRepository()
    app.state.dispatcher = RpcDispatcher(controllers)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(ValidationFailed)
    async def validation_error(request, exc: ValidationFailed):
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(PlanetsAdminError)
    async def application_error(request, exc: PlanetsAdminError):
        logger.error("Request failed: %s", exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    @app.get("/health", include_in_schema=False)
    async def health():
        return {"status": "ok"}

    # Planets

    @app.get("/api/planets", response_model=list[Planet], tags=["planets"])
    def list_planets():
        return app.state.planets.list()

    @app.get("/api/planets/{planet_id}", response_model=Planet, tags=["planets"])
    def get_planet(planet_id: str):
        planet = app.state.planets.get(planet_id)
        if planet is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Planet not found")
        return planet

    @app.post("/api/planets", response_model=Planet, status_code=status.HTTP_201_CREATED, tags=["planets"])
    def create_planet(data: PlanetInput, user: User = Depends(require_user)):
        planet = app.state.planets.create(data)
        logger.info("Planet %s created by %s", planet.id, user.id)
        return planet

    @app.put("/api/planets/{planet_id}", response_model=Planet, tags=["planets"])
    def update_planet(planet_id: str, data: PlanetInput, user: User = Depends(require_user)):
        planet = app.state.planets.update(planet_id, data)
        if planet is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Planet not found")
        return planet

    @app.delete("/api/planets/{planet_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["planets"])
    def delete_planet(planet_id: str, user: User = Depends(require_user)):
        if not app.state.planets.delete(planet_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Planet not found")
        logger.info("Planet %s deleted by %s", planet_id, user.id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    # Documentation

    @app.get("/api/openapi.json", include_in_schema=False)
    def openapi_json(user: User | None = Depends(current_user)):
        if user is None:
            return _error(status.HTTP_401_UNAUTHORIZED, "Unauthorized")
        return build_openapi_document(app, controllers, settings)

    @app.get("/api/docs", include_in_schema=False)
    def docs():
        return get_swagger_ui_html(openapi_url="/api/openapi.json", title="API Documentation")

    # Files

    @app.get("/api/images/{filename:path}", include_in_schema=False)
    def image(filename: str):
        if not filename:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Filename is required")
        try:
            stored = files.get_storage().get_object(filename)
        except StorageError:
            stored = None
        if stored is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
        return StreamingResponse(
            stored.iter_chunks(),
            media_type=stored.content_type or guess_content_type(filename),
            headers={"Cache-Control": IMAGE_CACHE_CONTROL},
        )

    # Backend methods; registered last so the routes above take precedence

    @app.post("/api/{action_url:path}", include_in_schema=False)
    def backend_method_call(
        action_url: str,
        payload: Any = Body(default=None),
        user: User | None = Depends(current_user),
    ):
        # validated here so malformed calls get the same 400 error body
        body = validate_schema(RpcRequest, {} if payload is None else payload)
        try:
            result = app.state.dispatcher.dispatch(action_url, body.args, user)
        except MethodNotFound as e:
            return _error(status.HTTP_404_NOT_FOUND, str(e))
        except Forbidden as e:
            code = status.HTTP_401_UNAUTHORIZED if user is None else status.HTTP_403_FORBIDDEN
            return _error(code, str(e))
        except RpcArgumentError as e:
            return _error(status.HTTP_400_BAD_REQUEST, str(e))
        return {"data": jsonable_encoder(result)}

    return app
