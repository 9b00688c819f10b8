# api/v1/router.py
from fastapi import APIRouter

from . import cron, plans, prefs

api_router = APIRouter()

api_router.include_router(plans.router, prefix="/meal-plans", tags=["Meal plans"])
api_router.include_router(cron.router, prefix="/cron", tags=["Scheduled jobs"])

# preferences live *under* the user resource
api_router.include_router(
    prefs.router,
    prefix="/users",          # results in /users/me/meal-plan-preferences
    tags=["Preferences"],
)
