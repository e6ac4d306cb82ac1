"""FastAPI application entrypoint and HTTP controllers.

Controllers are intentionally thin: they accept requests, delegate to
services, and return JSON responses.

Endpoints implemented:
- POST /auth/register
- POST /auth/login
- GET /communities
- POST /communities/join
- GET /communities/membership
- GET /health
"""

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session
from typing import Optional
import json
import logging
import time
import uuid
from .database import create_db_and_tables, get_session
from . import services, models
from .auth import get_current_user
from .errors import AppError
from .registration import RegistrationForm
from .schemas import CommunityOut, JoinIn, JoinOut, LoginIn, RegisterIn, TokenOut
from .config import settings

app = FastAPI(title="Innovatux Communities API")
logger = logging.getLogger("app.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

_LOGGED_PREFIXES = ("/auth", "/communities")

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


def _request_log(request: Request, req_id: str, started: float, **extra) -> str:
    record = {
        "request_id": req_id,
        "path": request.url.path,
        "method": request.method,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
        "client": request.client.host if request.client else "unknown",
    }
    record.update(extra)
    return json.dumps(record, ensure_ascii=True)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    logged = request.url.path.startswith(_LOGGED_PREFIXES)
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        if logged:
            logger.exception("request_failed %s", _request_log(request, req_id, started))
        raise
    response.headers["X-Request-ID"] = req_id
    if logged:
        logger.info("request_done %s", _request_log(request, req_id, started, status_code=response.status_code))
    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={'message': exc.message})


@app.post('/auth/register', response_model=TokenOut)
def register(payload: RegisterIn, db: Session = Depends(get_session)):
    """Create an account and return a token plus the user.

    Rejections use `{"errors": {field: [messages]}}` with status 422.
    """
    form = RegistrationForm(**payload.model_dump()).normalized()
    auth = services.AuthService(db)
    errors = auth.registration_errors(form)
    if errors:
        return JSONResponse(status_code=422, content={'errors': errors})
    try:
        user = auth.register(form)
    except IntegrityError:
        # a concurrent signup committed the same username or email first
        db.rollback()
        errors = auth.registration_errors(form) or {'username': ['The username has already been taken.']}
        return JSONResponse(status_code=422, content={'errors': errors})
    return {'token': services.issue_token(user), 'user': services.user_payload(user)}


@app.post('/auth/login', response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_session)):
    """Authenticate a user and return a short-lived JWT token."""
    user = services.AuthService(db).authenticate(payload.username, payload.password)
    if not user:
        raise HTTPException(status_code=401, detail='invalid credentials')
    return {'token': services.issue_token(user), 'user': services.user_payload(user)}


@app.get('/communities', response_model=list[CommunityOut])
def list_communities(db: Session = Depends(get_session)):
    """List every community."""
    return services.MembershipService(db).list_communities()


@app.post('/communities/join', response_model=JoinOut)
def join_community(payload: Optional[JoinIn] = None, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Join a community; joining one you already belong to is a no-op."""
    community_id = payload.community_id if payload else None
    outcome = services.MembershipService(db).join(user, community_id)
    return {'message': services.JOIN_MESSAGES[outcome], 'status': outcome.value}


@app.get('/communities/membership', response_model=dict[int, bool])
def membership(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Return `{community_id: bool}` for the current user."""
    return services.MembershipService(db).membership_status(user)


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
