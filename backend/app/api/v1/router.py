from fastapi import APIRouter

from app.api.v1.endpoints import audit_logs, chat, employees, health, org_chart, search, teams

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router)
api_router.include_router(search.router)
api_router.include_router(employees.router)
api_router.include_router(teams.router)
api_router.include_router(org_chart.router)
api_router.include_router(audit_logs.router)
api_router.include_router(chat.router)
