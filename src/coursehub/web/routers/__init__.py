from coursehub.web.routers.auth import router as auth_router
from coursehub.web.routers.page_visits import router as page_visits_router
from coursehub.web.routers.presence import router as presence_router
from coursehub.web.routers.profile import router as profile_router
from coursehub.web.routers.users import router as users_router

__all__ = [
    "auth_router",
    "page_visits_router",
    "presence_router",
    "profile_router",
    "users_router",
]
