# compensation_api/common/paging.py
from datetime import date
from decimal import Decimal, InvalidOperation

from flask import request

DEFAULT_PAGE = 1
DEFAULT_SIZE = 20
MAX_SIZE = 100

def page_limit():
    try:
        page = max(int(request.args.get("page", DEFAULT_PAGE)), 1)
    except Exception:
        page = DEFAULT_PAGE
    try:
        size = int(request.args.get("size", DEFAULT_SIZE))
        size = max(1, min(size, MAX_SIZE))
    except Exception:
        size = DEFAULT_SIZE
    return page, size

def text_q():
    q = request.args.get("q", "")
    return q.strip() or None

# ---------- tolerant parsers shared by the payroll blueprints ----------

def parse_date(s):
    if not s:
        return None
    try:
        return date.fromisoformat(str(s))
    except ValueError:
        return None

def parse_decimal(x):
    if x is None or x == "":
        return None
    try:
        return Decimal(str(x))
    except (InvalidOperation, ValueError):
        return None

def parse_bool(x):
    if isinstance(x, bool):
        return x
    if x is None:
        return None
    return str(x).lower() in ("1", "true", "yes", "y")

def num_to_float(v):
    try:
        return float(v) if v is not None else None
    except (TypeError, ValueError):
        return None
