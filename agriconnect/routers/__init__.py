# Routers package
from . import auth_router
from . import jobs_router
from . import chat_router
from . import ratings_router

__all__ = [
    "auth_router",
    "jobs_router",
    "chat_router",
    "ratings_router",
]
