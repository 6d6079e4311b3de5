import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from teamhub.errors import TeamError, ValidationError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(TeamError)
    async def handle_team_error(request: Request, exc: TeamError):
        """Render domain errors with their fixed status, code and message."""
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ):
        # Malformed bodies and parameters share the ValidationError status.
        return JSONResponse(
            status_code=ValidationError.status_code,
            content={
                "detail": ValidationError.message,
                "code": ValidationError.code,
                "errors": jsonable_encoder(exc.errors()),
            },
        )
