from fastapi import APIRouter

from tajiri.api.v1.routes import transactions, goals, budgets, insights, notification, assistant, jobs

api_router = APIRouter()

api_router.include_router(transactions.router)
api_router.include_router(goals.router)
api_router.include_router(budgets.router)
api_router.include_router(insights.router)
api_router.include_router(notification.router)
api_router.include_router(assistant.router)
api_router.include_router(jobs.router)
