from __future__ import annotations
from dotenv import load_dotenv

load_dotenv()

import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import CommonError, ErrorCode
from .routes import auth_router, survey_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
log = logging.getLogger("survey")

app = FastAPI(title="Survey Manage Service", version="1.0.0")

app.include_router(auth_router)
app.include_router(survey_router)

origins_raw = os.getenv("CORS_ALLOW_ORIGINS", "")
origins = [o.strip() for o in origins_raw.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)


@app.exception_handler(CommonError)
def _common_error(request: Request, exc: CommonError):
    log.info("%s %s -> %s %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=200, content={"code": exc.code, "errmsg": exc.message})


@app.exception_handler(RequestValidationError)
def _validation_error(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query"))
    message = f"{where}: {first.get('msg', 'invalid request')}" if where else first.get("msg", "invalid request")
    return JSONResponse(status_code=200, content={"code": ErrorCode.BAD_PARAMS, "errmsg": message})


@app.get("/healthz")
def health():
    return {"ok": True, "services": ["surveyManage", "auth"]}
