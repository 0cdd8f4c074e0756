import logging
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from sales_analytics.config import settings
from sales_analytics.engine import analyze
from sales_analytics.errors import AnalyticsError
from sales_analytics.logging_config import setup_logging
from sales_analytics.seed_data import seed
from sales_analytics.store import store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if settings.SEED_ON_STARTUP:
        store.clear()
        seed(store)
        logger.info("Seeded %d sellers, %d receipts", len(store.sellers), len(store.purchase_records))
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Seller revenue, profit, ranking and bonus analytics",
    lifespan=lifespan,
)


@app.exception_handler(AnalyticsError)
async def analytics_error_handler(request: Request, exc: AnalyticsError):
    logger.warning("Rejected %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=422,
        content={"error": exc.code, "message": exc.message, "details": exc.details},
    )


class AnalyzeRequest(BaseModel):
    data: dict[str, Any]
    options: Optional[dict[str, Any]] = None


# ── Sellers & products ───────────────────────────────────────────────────────

@app.get("/api/v1/sellers", summary="List all sellers")
def list_sellers():
    return {
        "sellers": [
            {**s.model_dump(), "name": s.display_name} for s in store.list_sellers()
        ]
    }


@app.get("/api/v1/sellers/{seller_id}", summary="Get seller details")
def get_seller(seller_id: str):
    seller = store.get_seller(seller_id)
    if not seller:
        raise HTTPException(404, f"Seller '{seller_id}' not found")
    return {**seller.model_dump(), "name": seller.display_name}


@app.get("/api/v1/products/{sku}", summary="Get product details")
def get_product(sku: str):
    product = store.get_product(sku)
    if not product:
        raise HTTPException(404, f"Product '{sku}' not found")
    return product.model_dump()


# ── Reports ──────────────────────────────────────────────────────────────────

def _report_options(min_profit, date_from, date_to) -> dict[str, Any]:
    options = {"min_profit": min_profit, "date_from": date_from, "date_to": date_to}
    return {k: v for k, v in options.items() if v is not None}


@app.get("/api/v1/report", summary="Rank the sellers of the loaded dataset")
def get_report(
    min_profit: Optional[Decimal] = Query(default=None, description="Drop sellers below this profit"),
    date_from:  Optional[date] = Query(default=None, examples=["2023-12-01"]),
    date_to:    Optional[date] = Query(default=None, examples=["2023-12-31"]),
):
    ranked = analyze(store.dataset(), _report_options(min_profit, date_from, date_to))
    return {"sellers": [r.model_dump() for r in ranked]}


@app.get("/api/v1/sellers/{seller_id}/report", summary="Ranked entry for one seller")
def get_seller_report(
    seller_id: str,
    date_from: Optional[date] = Query(default=None),
    date_to:   Optional[date] = Query(default=None),
):
    if not store.get_seller(seller_id):
        raise HTTPException(404, f"Seller '{seller_id}' not found")
    ranked = analyze(store.dataset(), _report_options(None, date_from, date_to))
    for position, entry in enumerate(ranked, start=1):
        if entry.seller_id == seller_id:
            return {"rank": position, "total": len(ranked), **entry.model_dump()}
    raise HTTPException(404, f"Seller '{seller_id}' has no sales in this period")


@app.post("/api/v1/analyze", summary="Analyze a posted dataset")
def post_analyze(request: AnalyzeRequest):
    ranked = analyze(request.data, request.options)
    return {"sellers": [r.model_dump() for r in ranked]}


# ── Admin ─────────────────────────────────────────────────────────────────────

@app.post("/api/v1/admin/seed", summary="Re-seed sample data")
def reseed():
    store.clear()
    seed(store)
    return {
        "status": "seeded",
        "sellers": len(store.sellers),
        "products": len(store.products),
        "purchase_records": len(store.purchase_records),
    }
