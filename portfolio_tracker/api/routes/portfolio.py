"""
Portfolio API Routes
Hybrid holdings (snapshot + live quotes) and totals
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from portfolio_tracker.api.dependencies import get_container
from portfolio_tracker.container import Container
from portfolio_tracker.domain.schemas.portfolio import (
    HoldingsResponse,
    HybridViewSchema,
    PortfolioSummarySchema,
    SummaryResponse,
)
from portfolio_tracker.domain.services.summary import summarize_views

logger = logging.getLogger(__name__)
router = APIRouter()


def _holdings_response(container: Container, views) -> HoldingsResponse:
    return HoldingsResponse(
        count=len(views),
        live_count=sum(1 for v in views if v.is_live),
        last_refreshed=container.scheduler.last_refreshed,
        holdings=[HybridViewSchema.from_view(v) for v in views],
    )


@router.get("/holdings", response_model=HoldingsResponse)
async def list_holdings(container: Container = Depends(get_container)):
    """Latest published collection."""
    return _holdings_response(container, container.scheduler.views)


@router.get("/holdings/{symbol}", response_model=HybridViewSchema)
async def get_holding(symbol: str, container: Container = Depends(get_container)):
    wanted = symbol.strip().lower()
    for view in container.scheduler.views:
        code = view.holding.listing_code
        if code and code.lower() == wanted:
            return HybridViewSchema.from_view(view)
    raise HTTPException(status_code=404, detail=f"Holding not found: {symbol}")


@router.get("/search", response_model=HybridViewSchema)
async def search_holding(
    name: str = Query(..., min_length=1),
    container: Container = Depends(get_container),
):
    """First holding whose name contains the fragment (case-insensitive)."""
    fragment = name.strip().lower()
    for view in container.scheduler.views:
        if view.holding.name and fragment in view.holding.name.lower():
            return HybridViewSchema.from_view(view)
    raise HTTPException(status_code=404, detail=f"No holding matching: {name}")


@router.get("/summary", response_model=SummaryResponse)
async def portfolio_summary(container: Container = Depends(get_container)):
    """Totals at current prices next to the totals recorded in the snapshot."""
    return SummaryResponse(
        live=PortfolioSummarySchema.from_summary(summarize_views(container.scheduler.views)),
        snapshot=PortfolioSummarySchema.from_summary(container.portfolio.get_portfolio_summary()),
    )


@router.get("/metadata")
async def snapshot_metadata(container: Container = Depends(get_container)):
    return container.portfolio.metadata


@router.post("/refresh", response_model=HoldingsResponse)
async def refresh_holdings(container: Container = Depends(get_container)):
    """Run one refresh now and return the new collection."""
    refreshed = await container.scheduler.refresh_now()
    if refreshed is None:
        raise HTTPException(status_code=409, detail="A refresh is already in progress")
    return _holdings_response(container, refreshed)


def _sse_event(container: Container, views) -> str:
    payload = _holdings_response(container, views).model_dump_json(by_alias=True)
    return f"event: holdings\ndata: {payload}\n\n"


@router.get("/stream")
async def stream_holdings(request: Request, container: Container = Depends(get_container)):
    """Server-sent events: the full collection after every refresh."""
    queue: asyncio.Queue = asyncio.Queue(maxsize=1)

    def on_refresh(views) -> None:
        # Slow clients only ever see the latest collection
        if queue.full():
            queue.get_nowait()
        queue.put_nowait(views)

    unsubscribe = container.bus.subscribe(on_refresh)

    async def events():
        try:
            yield _sse_event(container, container.scheduler.views)
            while not await request.is_disconnected():
                try:
                    views = await asyncio.wait_for(queue.get(), timeout=15)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield _sse_event(container, views)
        finally:
            unsubscribe()

    return StreamingResponse(events(), media_type="text/event-stream")
