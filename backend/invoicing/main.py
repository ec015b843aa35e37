"""Operations dashboard - invoice line-item API"""
import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from invoicing.config import settings
from invoicing.routers import invoices, rules

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Invoice line-item computation",
    version="1.0.0",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(invoices.router)
app.include_router(rules.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc):
    if isinstance(exc, HTTPException):
        raise exc
    logger.exception("unhandled error on %s", request.url.path)
    detail = str(exc) if exc else "Internal Server Error"
    return JSONResponse(
        status_code=500,
        content={"detail": detail},
    )


@app.get("/")
def home():
    return {"message": "invoicing service running"}
