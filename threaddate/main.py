import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from threaddate.log_config import setup_logging
from threaddate.middleware import BodySizeLimitMiddleware, RequestContextLogMiddleware
from threaddate.routers import admin_brands, brands, clothing, eras, profiles, search, seo, tags, uploads, votes
from threaddate.routers.auth import router as auth_router
from threaddate.schemas.common import first_error_message

setup_logging()

app = FastAPI(title="ThreadDate API")


def _cors_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["http://localhost:3000", "http://127.0.0.1:3000"]


app.add_middleware(RequestContextLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(BodySizeLimitMiddleware)


# every error leaves the API as {"success": false, "error": "..."}
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content={"success": False, "error": first_error_message(exc.errors())})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error("unhandled_error")
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


# Register routers
app.include_router(auth_router)
app.include_router(brands.router)
app.include_router(admin_brands.router)
app.include_router(tags.router)
app.include_router(votes.router)
app.include_router(clothing.router)
app.include_router(eras.router)
app.include_router(profiles.router)
app.include_router(search.router)
app.include_router(uploads.router)
app.include_router(seo.router)


# Health check
@app.get("/")
def health_check():
    return {"status": "ok"}
