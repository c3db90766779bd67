"""
Admin API endpoints for the Riskify admin dashboard.
All endpoints require an admin user.
"""
from fastapi import APIRouter

from riskify.api.v1.endpoints.admin import audit_logs, dashboard, swms, users

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

admin_router.include_router(users.router, prefix="/users", tags=["Admin Users"])
admin_router.include_router(swms.router, tags=["Admin SWMS"])
admin_router.include_router(dashboard.router, tags=["Admin Dashboard"])
admin_router.include_router(audit_logs.router, tags=["Admin Audit Logs"])
