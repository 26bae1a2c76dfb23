from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from core.exceptions import register_exception_handlers
from app.startup import configure_startup_logging, run_startup_checks

# ========== Analytics & Business Intelligence ==========
from modules.analytics.routers import bi_router


def create_app() -> FastAPI:
    """Build the FastAPI application for the BI analytics backend."""
    app = FastAPI(
        title=settings.app_name,
        description="""
    Business intelligence analytics over sales records supplied by the
    order/inventory store.

    ## Features

    * **ABC Analysis** - Pareto-style product tiering by cumulative revenue share
    * **Profit Analysis** - Profit and margin per item or category
    * **Trend Analysis** - Linear trend, forecast with confidence bounds, seasonality and insights
    * **KPIs** - Revenue, net profit, margin and average transaction value vs the previous period

    Every analysis returns `{"status": "ok", ...}` on success. A window without
    sales is still a success with empty results; only malformed requests and
    internal computation errors return `{"status": "error", ...}`.
    """,
        version=settings.app_version,
    )

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(bi_router)

    @app.on_event("startup")
    async def startup_event():
        """Validate configuration on application startup"""
        run_startup_checks()

    @app.get("/")
    def read_root():
        return {"message": f"{settings.app_name} is running", "version": settings.app_version}

    return app


configure_startup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
