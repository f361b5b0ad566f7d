import os
import secrets
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from ..config import get_admin_password
from ..exceptions import http_problem
from ..schemas import LoginRequest, MessageOut, TokenOut


def get_jwt_secret() -> str:
  secret = os.getenv("JWT_SECRET")
  if not secret:
    raise RuntimeError("JWT_SECRET environment variable is required")
  if len(secret) < 32 or secret.lower() in {"secret", "changeme", "default"}:
    raise RuntimeError(
        "JWT_SECRET must be at least 32 characters and not a common default"
    )
  return secret


JWT_ALG = "HS256"
JWT_EXPIRE_SECONDS = 12 * 3600
ADMIN_SUBJECT = "admin"


def _rate_limits_disabled() -> bool:
  return (os.getenv("DISABLE_AUTH_RATE_LIMITS") or "").lower() == "true"


def _get_client_ip(request: Request) -> str:
  forwarded = request.headers.get("X-Forwarded-For")
  if forwarded:
    parts = [ip.strip() for ip in forwarded.split(",") if ip.strip()]
    if parts:
      return parts[-1]
  real_ip = request.headers.get("X-Real-IP")
  if real_ip:
    return real_ip
  return request.client.host if request.client else ""


limiter = Limiter(key_func=_get_client_ip)
router = APIRouter(prefix="/auth", tags=["auth"])


def login_rate_limit() -> str:
  if _rate_limits_disabled():
    return "1000/second"
  return "5/minute"


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
  detail = exc.detail if isinstance(exc.detail, str) else ""
  if detail:
    message = f"rate limit exceeded: {detail}"
  else:
    message = "rate limit exceeded: please wait before submitting another request."
  return JSONResponse(
      status_code=429,
      content={
          "detail": message,
          "code": "rate_limit_exceeded",
      },
  )


def _utcnow() -> datetime:
  """Return a timezone-aware UTC ``datetime``."""

  return datetime.now(timezone.utc)


def create_token() -> str:
  now = _utcnow()
  payload = {
      "sub": ADMIN_SUBJECT,
      "iat": now,
      "exp": now + timedelta(seconds=JWT_EXPIRE_SECONDS),
      "jti": uuid.uuid4().hex,
  }
  return jwt.encode(payload, get_jwt_secret(), algorithm=JWT_ALG)


def _extract_bearer_token(authorization: str | None) -> str:
  if authorization and authorization.lower().startswith("bearer "):
    token = authorization.split(" ", 1)[1].strip()
    if token:
      return token

  raise http_problem(
      status_code=401,
      detail="missing token",
      code="auth_missing_token",
  )


async def require_auth(authorization: str | None = Header(None)) -> dict:
  """Dependency guarding admin-only routes; returns the decoded token payload."""

  token = _extract_bearer_token(authorization)
  try:
    payload = jwt.decode(token, get_jwt_secret(), algorithms=[JWT_ALG])
  except jwt.ExpiredSignatureError:
    raise http_problem(
        status_code=401,
        detail="token expired",
        code="auth_token_expired",
    )
  except jwt.PyJWTError:
    raise http_problem(
        status_code=401,
        detail="invalid token",
        code="auth_invalid_token",
    )
  if payload.get("sub") != ADMIN_SUBJECT:
    raise http_problem(
        status_code=401,
        detail="invalid token",
        code="auth_invalid_token",
    )
  return payload


@router.post("/login", response_model=TokenOut)
@limiter.limit(login_rate_limit)
async def login(request: Request, body: LoginRequest):
  expected = get_admin_password()
  if not expected:
    raise http_problem(
        status_code=500,
        detail="server configuration error",
        code="auth_not_configured",
    )
  if not secrets.compare_digest(body.password.encode("utf-8"), expected.encode("utf-8")):
    raise http_problem(
        status_code=401,
        detail="invalid password",
        code="auth_invalid_password",
    )
  return TokenOut(token=create_token())


@router.post("/logout", response_model=MessageOut)
async def logout():
  # Tokens are stateless; clients simply discard theirs.
  return MessageOut(message="Logged out")
