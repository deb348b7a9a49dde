"""Admin authentication endpoints."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from clawmgr.dependencies import Auth
from clawmgr.models.requests import LoginRequest

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/status")
async def auth_status(auth: Auth) -> dict:
    return {"ok": True, **auth.status()}


@router.get("/session")
async def auth_session(request: Request, auth: Auth) -> dict:
    result = auth.session(request.headers.get("authorization"), request.cookies.get(auth.cookie_name))
    return {"ok": True, **result}


@router.post("/login")
async def login(body: LoginRequest, request: Request, auth: Auth):
    token = auth.login(body.username.strip(), body.password)
    if auth.disabled:
        return {"ok": True, "disabled": True}

    response = JSONResponse({"ok": True})
    if token:
        response.set_cookie(
            auth.cookie_name,
            token,
            max_age=auth.session_ttl_seconds,
            path="/",
            httponly=True,
            samesite="lax",
            secure=request.url.scheme == "https",
        )
    return response
