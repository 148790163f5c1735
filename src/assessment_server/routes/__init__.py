"""Route registration — mounts all routers under ``/api``."""

from fastapi import FastAPI

from assessment_server.routes.configs import router as configs_router
from assessment_server.routes.submissions import router as submissions_router

API_PREFIX = "/api"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the API prefix."""
    app.include_router(configs_router, prefix=API_PREFIX)
    app.include_router(submissions_router, prefix=API_PREFIX)
