"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in each router
without modifying individual handlers. Health and auth routers are
open (no bearer token required).
"""

from fastapi import APIRouter, Depends

from taskhub.api.auth import router as auth_router
from taskhub.api.health import router as health_router
from taskhub.api.projects import router as projects_router
from taskhub.api.tasks import router as tasks_router
from taskhub.api.users import router as users_router
from taskhub.auth.dependencies import get_current_principal

# All protected routers require a valid access token
_auth = [Depends(get_current_principal)]

api_router = APIRouter(prefix="/api")

# Open routes: no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes: require a valid bearer access token
api_router.include_router(users_router, tags=["users"], dependencies=_auth)
api_router.include_router(projects_router, tags=["projects"], dependencies=_auth)
api_router.include_router(tasks_router, tags=["tasks"], dependencies=_auth)
