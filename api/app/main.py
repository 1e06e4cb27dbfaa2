import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from api.app.config import settings
from api.app.backend import build_backend
from api.app.routers.auth import router as auth_router
from api.app.routers.dashboard import router as dashboard_router
from api.app.routers.profile import router as profile_router
from api.app.routers.users import router as users_router
from common.clients.errors import BackendError
from common.services.uploads import ValidationFailed

LOG = logging.getLogger(__name__)

PASSTHROUGH_STATUSES = {401, 403, 404}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level.upper())
    app.state.backend = build_backend(settings)
    LOG.info("using %s backend", settings.backend)
    try:
        await app.state.backend.prepare()
        yield
    finally:
        await app.state.backend.aclose()

app = FastAPI(lifespan=lifespan, title="Delivery Dashboard API", version="0.1.0")

app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(profile_router)
app.include_router(users_router)


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError):
    LOG.warning("%s %s: backend error %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    status_code = exc.status_code if exc.status_code in PASSTHROUGH_STATUSES else 502
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


@app.exception_handler(ValidationFailed)
async def validation_error_handler(request: Request, exc: ValidationFailed):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.get("/health")
def health():
    return {
        "status": "OK",
        "version": app.version,
        "env": settings.app_env,
        "services": {
            "backend": settings.backend,
        },
    }
