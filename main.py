import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from storefront.api.errors import register_error_handlers
from storefront.api.routes import carts, orders, inventory
from storefront.core.config import settings
from storefront.core.database import engine, init_db

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(engine)
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront Inventory API",
        description="Inventory, cart and order reconciliation backend",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Include routers
    app.include_router(inventory.router, prefix="/api/v1/inventory", tags=["inventory"])
    app.include_router(carts.router, prefix="/api/v1/carts", tags=["carts"])
    app.include_router(orders.router, prefix="/api/v1/orders", tags=["orders"])
    register_error_handlers(app)

    @app.get("/")
    async def root():
        return {"message": "Storefront Inventory API"}

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
