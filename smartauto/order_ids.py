# smartauto/order_ids.py
import random
from datetime import datetime, timezone
from typing import Optional

ORDER_ID_PATTERN = r"^SA-\d{8}-\d{4}$"

_rng = random.SystemRandom()


def generate_order_id(now: Optional[datetime] = None, rng: Optional[random.Random] = None) -> str:
    """SA-YYYYMMDD-NNNN: UTC date of the call plus a random number in [1000, 9999]."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    day = now.astimezone(timezone.utc).strftime("%Y%m%d")
    return f"SA-{day}-{(rng or _rng).randint(1000, 9999)}"
