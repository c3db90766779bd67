from fastapi import APIRouter
from riskify.api.v1.endpoints import auth, swms, user, payments, reference, health
from riskify.api.v1.endpoints.admin import admin_router

api_router = APIRouter()

# Readiness/liveness checks
api_router.include_router(health.router)


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check endpoint for load balancer"""
    return {"status": "healthy", "service": "riskify-backend"}


api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(swms.router, prefix="/swms", tags=["SWMS"])
api_router.include_router(user.router, prefix="/user", tags=["User Billing"])
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])
api_router.include_router(reference.router, tags=["Reference Data"])

# Admin routes (requires admin role)
api_router.include_router(admin_router)
