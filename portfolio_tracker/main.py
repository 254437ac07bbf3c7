"""
FastAPI Main Application
Static portfolio snapshot + live quote refresh loop
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio_tracker import __version__
from portfolio_tracker.config import settings
from portfolio_tracker.container import Container, build_container
from portfolio_tracker.core.exceptions import SnapshotLoadError
from portfolio_tracker.core.logging import get_logger, setup_logging
from portfolio_tracker.domain.services.summary import summarize_views
from portfolio_tracker.utils.time import to_ist_iso
from portfolio_tracker.api.routes import portfolio, quotes

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


def log_refresh_totals(views) -> None:
    summary = summarize_views(views)
    logger.info(
        f"📈 Portfolio value {summary.total_present_value:,.2f} "
        f"(P&L {summary.total_gain_loss:+,.2f}, {summary.total_gain_loss_percent:+.2f}%)"
    )


async def start_services(container: Container) -> None:
    """Load holdings, build the first views, start the refresh loop."""
    try:
        holdings = container.portfolio.get_individual_stocks()
    except SnapshotLoadError as e:
        logger.error(f"❌ Portfolio snapshot unavailable: {e}")
        holdings = []
    logger.info(f"📊 Holdings loaded: {len(holdings)}")

    if container.settings.FETCH_ON_STARTUP:
        views = await container.engine.build_views(holdings)
    else:
        views = [container.engine.build_static_view(h) for h in holdings]
    live = sum(1 for v in views if v.is_live)
    logger.info(f"💹 Initial views built: {len(views)} ({live} live)")

    container.bus.subscribe(log_refresh_totals)

    if container.settings.REFRESH_ENABLED:
        container.scheduler.start(views)
        logger.info(f"⏱️  Refresh every {container.settings.REFRESH_INTERVAL_SECONDS}s")
    else:
        container.scheduler.seed(views)
        logger.info("⏰ Refresh loop disabled")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Builds the service graph on startup, stops the refresh loop on shutdown
    """
    logger.info("=" * 60)
    logger.info("🚀 Starting Portfolio Tracker")
    logger.info("=" * 60)

    container = build_container(settings)
    app.state.container = container
    await start_services(container)

    logger.info(f"✅ API Server: http://{settings.API_HOST}:{settings.API_PORT}")

    yield

    logger.info("🛑 Shutting down Portfolio Tracker...")
    container.scheduler.shutdown()
    logger.info("👋 Shutdown complete")


app = FastAPI(
    title="Portfolio Tracker",
    description="Spreadsheet holdings merged with live market quotes",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    container = getattr(app.state, "container", None)
    if container is None:
        return {"status": "starting", "service": "Portfolio Tracker", "version": __version__}

    scheduler = container.scheduler
    return {
        "status": "healthy",
        "service": "Portfolio Tracker",
        "version": __version__,
        "services": {
            "api": "running",
            "refresh": scheduler.state,
            "subscribers": container.bus.count(),
        },
        "quote_sources": container.orchestrator.source_names,
        "holdings": len(scheduler.views),
        "last_refreshed": to_ist_iso(scheduler.last_refreshed) if scheduler.last_refreshed else None,
    }


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "📈 Portfolio Tracker",
        "version": __version__,
        "docs": "/docs",
    }


app.include_router(quotes.router, prefix="/api", tags=["Quotes"])
app.include_router(portfolio.router, prefix="/api/v1/portfolio", tags=["Portfolio"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("portfolio_tracker.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)
