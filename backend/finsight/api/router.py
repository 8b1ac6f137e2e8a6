"""
Main API router.
"""

from fastapi import APIRouter
from finsight.api import categories, recurring, transactions

api_router = APIRouter()

api_router.include_router(transactions.router)
api_router.include_router(categories.router)
api_router.include_router(recurring.router)
