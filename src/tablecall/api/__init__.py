"""API route aggregation.

All routers registered here get mounted in main.py.

Auth is applied at the include_router level using FastAPI's
dependencies parameter. Health, auth and the public QR endpoint are
open; everything else needs an owner's access token.
"""

from fastapi import APIRouter, Depends

from tablecall.api.auth import router as auth_router
from tablecall.api.branches import router as branches_router
from tablecall.api.health import router as health_router
from tablecall.api.requests import public_router as public_requests_router
from tablecall.api.requests import router as requests_router
from tablecall.api.restaurants import router as restaurants_router
from tablecall.api.setup import router as setup_router
from tablecall.api.tables import router as tables_router
from tablecall.auth.dependencies import get_current_user

_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api/v1")

# Open routes
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(public_requests_router, tags=["public"])

# Protected routes
api_router.include_router(restaurants_router, tags=["restaurants"], dependencies=_auth)
api_router.include_router(branches_router, tags=["branches"], dependencies=_auth)
api_router.include_router(tables_router, tags=["tables"], dependencies=_auth)
api_router.include_router(setup_router, tags=["setup"], dependencies=_auth)
api_router.include_router(requests_router, tags=["requests"], dependencies=_auth)
