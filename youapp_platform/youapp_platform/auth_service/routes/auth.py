"""
Auth Router - HTTP entry points that forward to the auth service.

Requests travel over the same request/response contract the worker serves,
so business outcomes come back as values and are mapped to HTTP here.
"""
from typing import Any, Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from ..errors import ErrorCode
from ..messaging import RequestClient
from ..schemas import CreateUserDto, JwtPayload, LoginUserDto, ServerResponse

router = APIRouter(prefix="/api", tags=["auth"])


def get_auth_client(request: Request) -> RequestClient:
    return request.app.state.auth_client


def error_response(code: ErrorCode, message: Optional[str] = None) -> JSONResponse:
    body = ServerResponse(is_ok=False, error_code=int(code), message=message or code.message)
    return JSONResponse(status_code=code.http_status, content=body.to_wire())


def ok_response(data: Any) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_200_OK, content=ServerResponse(is_ok=True, data=data).to_wire())


# guard for the profile routes served by the platform gateway, e.g. Depends(require_auth)
async def require_auth(
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
    client: RequestClient = Depends(get_auth_client),
) -> JwtPayload:
    """Resolve the caller's claim from a Bearer access token, or reject with 401."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    token = authorization.split(" ", 1)[1].strip()
    payload = await client.send("validate", token)
    if not payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return JwtPayload.model_validate(payload)


@router.post("/register")
async def register(user: CreateUserDto, client: RequestClient = Depends(get_auth_client)):
    result = await client.send("register", user.model_dump())
    if isinstance(result, dict) and result.get("statusCode"):
        try:
            code = ErrorCode(result["statusCode"])
        except ValueError:
            code = ErrorCode.USER_CREATE_FAILED
        return error_response(code, result.get("error"))
    if result is not True:
        # the auth service could not handle the request
        return error_response(ErrorCode.USER_CREATE_FAILED)
    return Response(status_code=status.HTTP_201_CREATED)


@router.post("/login")
async def login(credentials: LoginUserDto, client: RequestClient = Depends(get_auth_client)):
    jwt = await client.send("login", credentials.model_dump(by_alias=True))
    if not jwt:
        return error_response(ErrorCode.INVALID_LOGIN)
    return ok_response(jwt)


@router.get("/refresh")
async def refresh(
    x_refresh_token: Optional[str] = Header(default=None, alias="x-refresh-token"),
    client: RequestClient = Depends(get_auth_client),
):
    jwt = await client.send("refresh", x_refresh_token)
    if not jwt:
        return error_response(ErrorCode.INVALID_REFRESH_TOKEN)
    return ok_response(jwt)
