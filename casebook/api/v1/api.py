"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from casebook.api.v1.endpoints import admin, auth, case_studies, system

api_router = APIRouter()

# Auth (OAuth callback, session)
api_router.include_router(auth.router)

# Case studies & favorites
api_router.include_router(case_studies.router)

# User management & owner notification
api_router.include_router(admin.router)

# Health
api_router.include_router(system.router)
