# src/storefront/api/routes/router.py
from fastapi import APIRouter

from storefront.api.routes import catalog, products, subscriptions

api_router = APIRouter()
api_router.include_router(products.router)
api_router.include_router(catalog.router)
api_router.include_router(subscriptions.router)
