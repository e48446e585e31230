# app/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import APP_ENV, LOG_LEVEL
from app.database import Base, engine
from app.endpoints import ai_test_router, requests_router
from app.endpoints.dispatch_ws import ws_dispatch
from app.errors import ServiceError
from app.models import request as request_model  # noqa: F401  registers CareRequest with Base
from app.services.dispatch import DispatchChannel

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="CareCall Dispatch API", version="1.0.0")


@app.on_event("startup")
async def startup_event():
    # Create database tables
    Base.metadata.create_all(bind=engine)

    channel = DispatchChannel()
    channel.start()
    app.state.dispatch = channel


@app.on_event("shutdown")
async def shutdown_event():
    channel = getattr(app.state, "dispatch", None)
    if channel is not None:
        await channel.close()


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} failed: {exc.detail or exc.public_message}")
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.public_message})


# Include HTTP routers
app.include_router(requests_router)
if APP_ENV != "production":
    app.include_router(ai_test_router)

# Mount WebSocket endpoints
app.add_api_websocket_route("/ws/dispatch", ws_dispatch)


@app.get("/")
def root():
    return {"message": "API is running"}


@app.get("/health")
def health():
    return {"status": "ok"}
