"""FastAPI JSON surface over the aggregation engine and action simulator"""

import os
from functools import lru_cache
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel

from . import __version__
from .config import config
from .engine import AggregationEngine
from .errors import InvalidArgumentError
from .models import Collection, Item, ItemPage, QueryParams, SortDirection, SortKey, TransactionReceipt
from .simulator import ActionSimulator

app = FastAPI(title="NFT Gallery API", version=__version__)

ALLOWED_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")
if ALLOWED_ORIGINS == ["*"]:
    logger.warning("⚠️ CORS is set to allow all origins. Consider restricting in production.")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    max_age=3600,
)


@lru_cache()
def get_engine() -> AggregationEngine:
    return AggregationEngine.from_config(config)


@lru_cache()
def get_simulator() -> ActionSimulator:
    return ActionSimulator.from_config(config)


class PurchaseRequest(BaseModel):
    token_id: str
    contract_address: str
    buyer_address: str
    network: str = "mainnet"


class ListingRequest(BaseModel):
    token_id: str
    contract_address: str
    price: str
    owner_address: str
    network: str = "mainnet"


class CancelRequest(BaseModel):
    token_id: str
    contract_address: str
    owner_address: str
    network: str = "mainnet"


def parse_trait_filters(traits: List[str]) -> Dict[str, List[str]]:
    """``["Background=Blue", "Background=Red", "Eyes=Laser"]`` -> trait map"""
    selected: Dict[str, List[str]] = {}
    for pair in traits:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise HTTPException(status_code=400, detail=f"Invalid trait filter '{pair}', expected trait=value")
        selected.setdefault(name.strip(), []).append(value.strip())
    return selected


@app.on_event("shutdown")
async def close_engine():
    if get_engine.cache_info().currsize:
        await get_engine().close()


@app.get("/health")
async def health():
    return {"status": "healthy", "version": __version__}


@app.get("/networks")
async def networks(engine: AggregationEngine = Depends(get_engine)):
    return {
        "default": engine.resolver.default,
        "networks": list(engine.resolver.networks()),
    }


@app.get("/collections")
async def list_collections(
    network: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    engine: AggregationEngine = Depends(get_engine),
):
    records = await engine.list_collections(network, page, page_size)
    return {
        "collections": [record.dict() for record in records],
        "total": engine.count_collections(network),
        "page": page,
        "page_size": page_size,
    }


@app.get("/collections/{address}", response_model=Collection)
async def collection_detail(
    address: str,
    network: Optional[str] = None,
    engine: AggregationEngine = Depends(get_engine),
):
    return await engine.resolve_collection(address, engine.resolver.resolve(network).name)


@app.get("/collections/{address}/items", response_model=ItemPage)
async def collection_items(
    address: str,
    network: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: str = "token_id",
    sort_dir: SortDirection = SortDirection.ASC,
    q: str = "",
    trait: List[str] = Query([]),
    engine: AggregationEngine = Depends(get_engine),
):
    params = QueryParams(
        network=network,
        page=page,
        page_size=page_size,
        sort_by=SortKey.from_string(sort_by),
        sort_dir=sort_dir,
        query=q,
        attributes=parse_trait_filters(trait),
    )
    return await engine.browse_collection(address, params)


@app.get("/owners/{address}/items", response_model=List[Item])
async def owner_items(
    address: str,
    network: Optional[str] = None,
    engine: AggregationEngine = Depends(get_engine),
):
    return await engine.list_by_owner(address, network)


@app.get("/items/browse", response_model=List[Item])
async def browse_items(
    network: Optional[str] = None,
    limit: int = Query(20, le=200),
    engine: AggregationEngine = Depends(get_engine),
):
    return await engine.list_browsable(network, limit)


@app.get("/items/{address}/{token_id}", response_model=Item)
async def item_detail(
    address: str,
    token_id: str,
    network: Optional[str] = None,
    engine: AggregationEngine = Depends(get_engine),
):
    try:
        result = await engine.get_item_detail(address, token_id, network)
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail="Item not found or unavailable")
    return result


@app.get("/search", response_model=List[Item])
async def search(
    q: str = "",
    network: Optional[str] = None,
    limit: int = Query(20, le=200),
    engine: AggregationEngine = Depends(get_engine),
):
    return await engine.search(q, network, limit)


@app.post("/actions/purchase", response_model=TransactionReceipt)
async def purchase(request: PurchaseRequest, simulator: ActionSimulator = Depends(get_simulator)):
    """Simulated purchase; no transaction is sent"""
    try:
        return await simulator.purchase(
            request.token_id,
            request.contract_address,
            request.network,
            request.buyer_address,
        )
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/actions/list", response_model=TransactionReceipt)
async def list_item(request: ListingRequest, simulator: ActionSimulator = Depends(get_simulator)):
    """Simulated listing; no transaction is sent"""
    try:
        return await simulator.list_item(
            request.token_id,
            request.contract_address,
            request.price,
            request.owner_address,
            request.network,
        )
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/actions/cancel", response_model=TransactionReceipt)
async def cancel_listing(request: CancelRequest, simulator: ActionSimulator = Depends(get_simulator)):
    """Simulated listing cancellation; no transaction is sent"""
    try:
        return await simulator.cancel_listing(
            request.token_id,
            request.contract_address,
            request.owner_address,
            request.network,
        )
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))
