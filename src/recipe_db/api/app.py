"""FastAPI application factory."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from recipe_db.api.routes import router
from recipe_db.app_logging import configure_logging
from recipe_db.containers import AppContainer
from recipe_db.errors import (
    InvalidDocumentError,
    InvalidRecordError,
    InvalidSubstitutionError,
    MaterialNotFoundError,
    RecipeDbError,
    RecipeNotFoundError,
)

_ERROR_STATUS = {
    MaterialNotFoundError: status.HTTP_404_NOT_FOUND,
    RecipeNotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidRecordError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidDocumentError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidSubstitutionError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    app = FastAPI(title=container.settings.app_name)
    app.state.container = container
    app.include_router(router)

    @app.exception_handler(RecipeDbError)
    async def handle_domain_error(request: Request, exc: RecipeDbError) -> JSONResponse:
        code = _ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
        logger.info("Request %s failed: %s", request.url.path, exc)
        messages = getattr(exc, "messages", None) or [str(exc)]
        return JSONResponse(status_code=code, content={"errors": messages})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
