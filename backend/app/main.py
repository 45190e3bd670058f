import json
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from .db import fetch_layout, init_db, save_layout
from .layouts import DEFAULT_LAYOUTS, effective_area_names, resolve_default_layout
from .models import (
    DefaultLayoutResponse,
    LayoutAreaIn,
    LayoutResponse,
    SaveLayoutRequest,
    SortErrorResponse,
    SortItem,
    SortResponse,
)
from .organize import SortingError, sort_by_layout
from .sanitize import sanitize

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'authorization, x-client-info, apikey, content-type',
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=['*'],
    allow_methods=['*'],
    allow_headers=['authorization', 'x-client-info', 'apikey', 'content-type'],
)


def _json(content: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)


def _parse_entries(raw, model):
    """Validate each entry on its own; entries that don't fit are skipped."""
    if not isinstance(raw, list):
        return []
    parsed = []
    for entry in raw:
        try:
            parsed.append(model.model_validate(entry).model_dump())
        except ValidationError:
            continue
    return parsed


def _unique_items(items):
    """Drop repeated item ids, keeping the first occurrence."""
    seen = set()
    unique = []
    for item in items:
        if item["id"] not in seen:
            seen.add(item["id"])
            unique.append(item)
    return unique


@app.get("/")
def read_root():
    return {"service": "shop-layout-sorter"}


@app.options("/sort-by-layout")
def sort_preflight():
    return PlainTextResponse('ok', headers=CORS_HEADERS)


@app.post(
    "/sort-by-layout",
    response_model=SortResponse,
    responses={400: {"description": "Invalid JSON payload"}, 500: {"model": SortErrorResponse}},
)
async def sort_endpoint(request: Request):
    try:
        body = json.loads(await request.body())
    except (ValueError, UnicodeDecodeError):
        return _json({"error": "Invalid JSON payload"}, status_code=400)

    if not isinstance(body, dict):
        body = {}

    items = _unique_items(_parse_entries(body.get("items"), SortItem))
    if not items:
        return _json({"sorted": []})

    layout = _parse_entries(body.get("layout"), LayoutAreaIn)
    shop_name = body.get("shopName")
    if not isinstance(shop_name, str) or not shop_name:
        shop_name = "Unknown"

    areas = effective_area_names(layout)
    try:
        # sort_by_layout blocks on the model call; keep it off the event loop.
        cleaned, areas = await run_in_threadpool(sort_by_layout, shop_name, items, layout)
    except SortingError as e:
        print(f'sort-by-layout error: {e}', file=sys.stderr)
        return _json({
            "error": "Sorting failed",
            "message": str(e),
            "areas": areas,
            "sorted": sanitize(items, areas, []),
        }, status_code=500)

    return _json({"sorted": cleaned, "areas": areas})


@app.get("/layouts", response_model=LayoutResponse)
def get_layout(
    user_id: str = Query(..., min_length=1),
    shop_name: str = Query(..., min_length=1, description="Shop name (e.g. Lidl, Kaufland)"),
) -> LayoutResponse:
    areas = fetch_layout(user_id, shop_name)
    return LayoutResponse(user_id=user_id, shop_name=shop_name, areas=areas)


@app.put("/layouts", response_model=LayoutResponse)
def put_layout(req: SaveLayoutRequest) -> LayoutResponse:
    areas = save_layout(req.user_id, req.shop_name, req.areas)
    return LayoutResponse(user_id=req.user_id, shop_name=req.shop_name, areas=areas)


@app.get("/layouts/defaults", response_model=DefaultLayoutResponse)
def default_layout(shop_name: str = Query(None)) -> DefaultLayoutResponse:
    return DefaultLayoutResponse(
        shop_name=shop_name,
        areas=resolve_default_layout(shop_name),
        presets=list(DEFAULT_LAYOUTS),
    )
