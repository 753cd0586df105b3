"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import (attendance, auth, batch, company,
                                  notifications, payroll)

api_router = APIRouter()

# Auth (login, refresh, account management)
api_router.include_router(auth.router)

# Check-in / check-out, correction requests
api_router.include_router(attendance.router)

# Payroll listing and admin review
api_router.include_router(payroll.router)

# Company settings, holidays, sites
api_router.include_router(company.router)

api_router.include_router(notifications.router)

# Scheduler-triggered jobs and health
api_router.include_router(batch.router)
