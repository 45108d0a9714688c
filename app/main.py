import logging
import logging.config

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import get_settings
from app.routers.analyze import router as analyze_router
from app.routers.capture import limiter, router as capture_router
from app.routers.export import router as export_router
from app.services.providers import PROVIDERS

logging.config.dictConfig(
    {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "format": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
            },
        },
        "root": {"level": "INFO", "handlers": ["console"]},
    }
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="ScreenFlow Capture API",
    description=(
        "Crawls a site and captures desktop and mobile screenshots of its pages "
        "through a chain of external screenshot providers (mshots, Microlink, "
        "thum.io).  Pages no provider can render come back as error placeholders; "
        "finished batches can be analysed with Gemini or exported as a ZIP archive."
    ),
    version="1.0.0",
)

# Rate-limiting state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception for %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred."})


app.include_router(capture_router)
app.include_router(analyze_router)
app.include_router(export_router)


@app.get("/", summary="Health check")
async def root() -> dict:
    """Report the provider roster and whether screenshot analysis is available."""
    settings = get_settings()
    return {
        "status": "ok",
        "providers": list(PROVIDERS),
        "analysis_enabled": bool(settings.gemini_api_key),
        "proxy": settings.proxy_base,
    }
