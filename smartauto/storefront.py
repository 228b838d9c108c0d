# smartauto/storefront.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from . import crud, pipeline
from .db import get_db
from .deps import get_auth_context, get_relay_client, get_user_from_token
from .errors import NotificationFailed, SmartAutoError
from .relay_client import RelayClient
from .schemas import ComplaintForm, OrderForm, ReviewForm
from .session import AuthContext, Identity

router = APIRouter(tags=["storefront"])

RECENT_REVIEWS_LIMIT = 20


def _respond(result: pipeline.SubmissionResult) -> dict:
    out = {"ok": True, "message": result.message, "record": result.record}
    if result.kind == "order":
        out["order_id"] = result.record["order_id"]
    return out


async def _run(submit, db, relay, ctx, form) -> dict:
    try:
        result = await submit(db, relay, ctx, form)
    except NotificationFailed as e:
        raise HTTPException(status_code=e.status_code, detail={
            "message": e.message,
            "record_saved": True,
            "record": e.record,
        })
    except SmartAutoError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return _respond(result)


@router.get("/products")
async def products(db: AsyncSession = Depends(get_db)):
    return await crud.list_products(db)


@router.post("/orders")
async def place_order(payload: OrderForm,
                      ctx: AuthContext = Depends(get_auth_context),
                      relay: RelayClient = Depends(get_relay_client),
                      db: AsyncSession = Depends(get_db)):
    return await _run(pipeline.submit_order, db, relay, ctx, payload)


@router.get("/orders/me")
async def my_orders(identity: Identity = Depends(get_user_from_token),
                    db: AsyncSession = Depends(get_db)):
    return await crud.query(db, "orders", {"user_id": identity.user_id})


@router.post("/complaints")
async def file_complaint(payload: ComplaintForm,
                         ctx: AuthContext = Depends(get_auth_context),
                         relay: RelayClient = Depends(get_relay_client),
                         db: AsyncSession = Depends(get_db)):
    return await _run(pipeline.submit_complaint, db, relay, ctx, payload)


@router.get("/complaints/me")
async def my_complaints(identity: Identity = Depends(get_user_from_token),
                        db: AsyncSession = Depends(get_db)):
    return await crud.query(db, "complaints", {"user_id": identity.user_id})


@router.post("/reviews")
async def post_review(payload: ReviewForm,
                      ctx: AuthContext = Depends(get_auth_context),
                      relay: RelayClient = Depends(get_relay_client),
                      db: AsyncSession = Depends(get_db)):
    return await _run(pipeline.submit_review, db, relay, ctx, payload)


@router.get("/reviews")
async def recent_reviews(db: AsyncSession = Depends(get_db)):
    return await crud.query(db, "reviews", limit=RECENT_REVIEWS_LIMIT)
