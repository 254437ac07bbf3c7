"""
Quote lookup routes.

A route either fully succeeds or fully fails: 400 for a missing symbol,
500 when every source failed or something unexpected broke.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from portfolio_tracker.api.dependencies import get_container
from portfolio_tracker.container import Container
from portfolio_tracker.infrastructure.market_data.provider_chain import QuoteFetchOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter()


def _missing_symbol() -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Symbol parameter is required"})


def _internal_error(symbol: str, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "symbol": symbol, "message": str(exc)},
    )


async def _quote_response(
    container: Container,
    chain: QuoteFetchOrchestrator,
    symbol: Optional[str],
    failure: str,
) -> JSONResponse:
    symbol = (symbol or "").strip()
    if not symbol:
        return _missing_symbol()

    try:
        provider_symbol = container.mapper.to_provider_symbol(symbol)
        logger.info("Fetching quote for %s (%s) via %s", symbol, provider_symbol, chain.source_names)
        quote = await chain.resolve_quote(provider_symbol)
    except Exception as exc:
        logger.exception("Quote lookup failed for %s", symbol)
        return _internal_error(symbol, exc)

    if quote is None:
        return JSONResponse(
            status_code=500,
            content={
                "error": failure,
                "symbol": symbol,
                "message": "Please check the symbol or try again later",
            },
        )
    return JSONResponse(content=quote.to_dict())


@router.get("/quote")
async def get_quote(
    symbol: Optional[str] = Query(None),
    container: Container = Depends(get_container),
):
    """Full chain: structured APIs first, scrape last."""
    return await _quote_response(
        container, container.orchestrator, symbol,
        "Unable to fetch real-time data from all sources",
    )


@router.get("/yahoo-finance/quote")
async def get_structured_quote(
    symbol: Optional[str] = Query(None),
    container: Container = Depends(get_container),
):
    """Structured API sources only."""
    return await _quote_response(
        container, container.structured_chain, symbol,
        "Unable to fetch real-time data from all sources",
    )


@router.get("/scrape-fallback/quote")
async def get_scraped_quote(
    symbol: Optional[str] = Query(None),
    container: Container = Depends(get_container),
):
    """HTML scrape sources only."""
    return await _quote_response(
        container, container.scrape_chain, symbol,
        "Unable to scrape data",
    )


@router.get("/google-finance/quote")
async def get_fundamentals(
    symbol: Optional[str] = Query(None),
    container: Container = Depends(get_container),
):
    """P/E and earnings scraped from public quote pages."""
    symbol = (symbol or "").strip()
    if not symbol:
        return _missing_symbol()

    code = container.fundamentals.normalize_symbol(symbol)
    try:
        fundamentals = await container.fundamentals.fetch(symbol)
    except Exception as exc:
        logger.exception("Fundamentals lookup failed for %s", symbol)
        return _internal_error(code, exc)

    if fundamentals is None:
        return JSONResponse(
            status_code=500,
            content={
                "error": "Unable to fetch real-time financial data from any source",
                "symbol": code,
                "message": "Both Google Finance and Yahoo Finance failed to provide data",
            },
        )
    return JSONResponse(content=fundamentals.to_dict())
