"""
API v1 routes.
"""

from fastapi import APIRouter

from opsconsole.api.v1 import audit_logs, auth, delivery_notes, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(delivery_notes.router, prefix="/delivery-notes", tags=["Delivery Notes"])
router.include_router(audit_logs.router, prefix="/audit-logs", tags=["Audit Logs"])
