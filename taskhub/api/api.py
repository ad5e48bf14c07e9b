"""
API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from taskhub.api.endpoints import admin, auth, health, users

api_router = APIRouter()

# Login, register, session profile, logout
api_router.include_router(auth.router)

# Profiles
api_router.include_router(users.router)

# User management (admin role)
api_router.include_router(admin.router)

api_router.include_router(health.router)
