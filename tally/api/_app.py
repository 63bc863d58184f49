"""
FastAPI app exposing the quote operation to the checkout UI.

    app = create_app(PricingEngine(store, PricingConfig.from_env()))
    # uvicorn module:app
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import fastapi
from fastapi.responses import JSONResponse
from kungfu import Ok, Error

from tally.api._schemas import ErrorOut, QuoteIn, QuoteOut
from tally.totals import PricingEngine

type Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def create_app(engine: PricingEngine, clock: Clock = _utc_now) -> fastapi.FastAPI:
    """
    POST /quote → 200 QuoteOut
                → 422 ErrorOut for pricing rejections (stock, code, limits)
                → 503 ErrorOut when the discount store is down
    """
    app = fastapi.FastAPI(title="tally")

    @app.post(
        "/quote",
        response_model=QuoteOut,
        responses={422: {"model": ErrorOut}, 503: {"model": ErrorOut}},
    )
    async def quote(req: QuoteIn) -> Any:
        result = await engine.compute_order_total(
            req.to_lines(), req.discount_code, req.customer_id, clock()
        )
        match result:
            case Ok(breakdown):
                return QuoteOut.from_domain(breakdown)
            case Error(e):
                status = 422 if e.kind.recoverable else 503
                return JSONResponse(
                    status_code=status,
                    content=ErrorOut.from_domain(e).model_dump(mode="json"),
                )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


__all__ = ("create_app", "Clock")
