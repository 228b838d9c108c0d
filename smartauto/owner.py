# smartauto/owner.py
import hmac
import logging
import os
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from . import aggregation, auth, crud, export
from .db import get_db
from .deps import require_owner
from .models import ORDER_STATUSES
from .schemas import OwnerLoginIn
from .session import AuthContext

logger = logging.getLogger(__name__)

router = APIRouter(tags=["owner"])

OWNER_COLLECTIONS = ("orders", "complaints", "reviews")


def owner_id_setting() -> Optional[str]:
    return os.getenv("OWNER_ID") or None


async def fetch_collection(db: AsyncSession, kind: str) -> List[Dict]:
    """Unscoped read of a whole collection, newest first."""
    return await crud.query(db, kind)


async def fetch_all(db: AsyncSession) -> Dict[str, List[Dict]]:
    data = {kind: await fetch_collection(db, kind) for kind in OWNER_COLLECTIONS}
    data["products"] = await crud.list_products(db)
    return data


# ---------- owner session ----------
@router.post("/owner/login")
async def owner_login(payload: OwnerLoginIn, db: AsyncSession = Depends(get_db)):
    email, password, owner_id = payload.email.strip(), payload.password, payload.owner_id
    if not email or not password.strip() or not owner_id.strip():
        raise HTTPException(status_code=400, detail="All fields are required")

    expected = owner_id_setting()
    if not expected or not hmac.compare_digest(owner_id.encode(), expected.encode()):
        logger.warning("[OWNER] rejected owner id for %s", email)
        raise HTTPException(status_code=403, detail="Invalid Owner ID. Access denied.")

    user = await auth.authenticate(db, email, password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    logger.info("[OWNER] access granted to %s", user.user_id)
    return {"access_token": auth.token_for(user, role="owner"), "token_type": "bearer"}


@router.post("/owner/logout")
async def owner_logout(ctx: AuthContext = Depends(require_owner), db: AsyncSession = Depends(get_db)):
    await auth.sign_out(db, ctx)
    return {"ok": True}


# ---------- privileged reads ----------
@router.get("/owner-data")
async def owner_data(
    kind: str = Query(..., alias="type", description="orders | complaints | reviews"),
    ctx: AuthContext = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
):
    if kind not in OWNER_COLLECTIONS:
        raise HTTPException(status_code=400, detail="Invalid type")
    return await fetch_collection(db, kind)


@router.get("/owner/dashboard")
async def owner_dashboard(
    q: str = Query("", description="order code, product name or customer email"),
    status: str = Query("", description="pending | completed | cancelled; empty for all"),
    ctx: AuthContext = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
):
    if status and status not in ORDER_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status")
    data = await fetch_all(db)
    orders = data["orders"]
    customers = aggregation.build_customer_aggregates(orders, data["complaints"], data["reviews"])
    low = aggregation.low_stock(data["products"])
    return {
        "stats": {
            "orders": len(orders),
            "revenue": aggregation.total_revenue(orders),
            "complaints": len(data["complaints"]),
            "low_stock": len(low),
        },
        "orders": aggregation.filter_orders(orders, q, status),
        "customers": aggregation.customer_rows(customers),
        "complaints": data["complaints"],
        "reviews": data["reviews"],
        "low_stock": low,
    }


# ---------- exports ----------
def _attachment(body: str, filename: str, media_type: str) -> Response:
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/owner/export/{filename}")
async def owner_export(filename: str,
                       ctx: AuthContext = Depends(require_owner),
                       db: AsyncSession = Depends(get_db)):
    if filename == "smartauto-backup.json":
        data = await fetch_all(db)
        doc = export.backup_document(data["orders"], data["complaints"], data["reviews"], data["products"])
        return _attachment(export.to_json(doc), filename, export.JSON_MEDIA_TYPE)

    if filename == "orders.csv":
        rows = await fetch_collection(db, "orders")
    elif filename == "complaints.csv":
        rows = await fetch_collection(db, "complaints")
    elif filename == "customers.csv":
        data = await fetch_all(db)
        rows = aggregation.customer_rows(
            aggregation.build_customer_aggregates(data["orders"], data["complaints"], data["reviews"])
        )
    else:
        raise HTTPException(status_code=404, detail="Unknown export")

    body = export.to_csv(rows)
    if body is None:
        return Response(status_code=204)
    logger.info("[OWNER] exported %s (%s rows)", filename, len(rows))
    return _attachment(body, filename, export.CSV_MEDIA_TYPE)
