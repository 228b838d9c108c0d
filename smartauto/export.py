# smartauto/export.py
import csv
import io
import json
from typing import Any, Dict, List, Mapping, Optional, Sequence

CSV_MEDIA_TYPE = "text/csv"
JSON_MEDIA_TYPE = "application/json"


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_csv(records: Sequence[Mapping[str, Any]]) -> Optional[str]:
    """
    Header is the first record's keys, plain; every data field is quoted and
    embedded quotes are doubled. Keys missing from later records render
    empty, extra keys are dropped. Returns None for an empty collection.
    """
    if not records:
        return None
    headers = list(records[0].keys())
    buf = io.StringIO()
    buf.write(",".join(headers) + "\n")
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in records:
        writer.writerow([_cell(row.get(h)) for h in headers])
    return buf.getvalue().rstrip("\n")


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, default=str)


def backup_document(
    orders: List[Dict[str, Any]],
    complaints: List[Dict[str, Any]],
    reviews: List[Dict[str, Any]],
    products: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    return [{"orders": orders, "complaints": complaints, "reviews": reviews, "products": products}]
