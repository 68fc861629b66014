"""
API Router v1

Combines all route modules.
"""

from fastapi import APIRouter

from routedrafts.api.v1.routes import drafts, routes, saved_routes, user_index

api_router = APIRouter()

api_router.include_router(drafts.router, prefix="/drafts", tags=["Drafts"])
api_router.include_router(routes.router, prefix="/routes", tags=["Routes"])
api_router.include_router(saved_routes.router, prefix="/saved-routes", tags=["Saved routes"])
api_router.include_router(user_index.router, prefix="/users", tags=["Users"])
