from typing import Annotated, cast

from fastapi import Depends, Request

from coursehub.app import App
from coursehub.core.modules.session.models import SessionId

# Key inside the signed Starlette session cookie
SESSION_KEY = "session_id"


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_session_id(request: Request) -> SessionId | None:
    """Session token from the signed session cookie, if any.

    Validation happens in the App facade, once per request.
    """
    value = request.session.get(SESSION_KEY)
    return SessionId(value) if isinstance(value, str) and value else None


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
SessionIdDep = Annotated[SessionId | None, Depends(get_session_id)]
