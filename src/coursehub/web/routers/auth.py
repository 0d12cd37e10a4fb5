from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from coursehub.core.modules.user.models import UserView
from coursehub.web.deps import SESSION_KEY, AppDep, SessionIdDep
from coursehub.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    """Authentication request."""

    username: str = Field(..., description="Username for authentication")
    password: str = Field(..., description="Password for authentication")


class RegisterRequest(BaseModel):
    """Registration request."""

    username: str = Field(..., description="Username for the new account")
    password: str = Field(..., description="Password for the new account")
    account_id: str = Field(..., description="External account ID, unique per user")


class SubjectResponse(BaseModel):
    """Authenticated or newly created user."""

    subject: UserView = Field(..., description="User account")


@router.post(
    "/login",
    summary="Authenticate user",
    description=(
        "Authenticate with username and password. The session is kept in an HTTP-only cookie; "
        "a session already carried by the cookie is revoked."
    ),
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(login_data: LoginRequest, app: AppDep, session_id: SessionIdDep, request: Request) -> SubjectResponse:
    new_session_id, user = await app.login(login_data.username, login_data.password, session_id)
    request.session[SESSION_KEY] = new_session_id
    return SubjectResponse(subject=user)


@router.post(
    "/register",
    summary="Register account",
    description="Create a regular user account.",
    operation_id="register",
    status_code=201,
    responses={
        201: {"description": "Account created"},
        400: {"model": ErrorResponse, "description": "Invalid input or username/account ID taken"},
    },
)
async def register(register_data: RegisterRequest, app: AppDep) -> SubjectResponse:
    user = await app.register(register_data.username, register_data.password, register_data.account_id)
    return SubjectResponse(subject=user)


@router.post(
    "/logout",
    summary="End session",
    description="Revoke the current session and clear the cookie. Succeeds without a session too.",
    operation_id="logout",
    responses={200: {"description": "Logged out"}},
)
async def logout(app: AppDep, session_id: SessionIdDep, request: Request) -> dict[str, str]:
    await app.logout(session_id)
    request.session.clear()
    return {"status": "logged_out"}


@router.get(
    "/session/current",
    summary="Current session user",
    description="Get the user bound to the current session.",
    operation_id="getCurrentSession",
    responses={
        200: {"description": "Current user"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_current_session(app: AppDep, session_id: SessionIdDep) -> SubjectResponse:
    return SubjectResponse(subject=await app.get_current_user(session_id))
