# storefront/api/__init__.py
from fastapi import FastAPI
from storefront.api.routers import carts, health, products, tickets, users

def include_routers(app: FastAPI):
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(tickets.router)
