# compensation_api/common/http.py
from flask import jsonify


def _plain(data):
    # engine results (Breakdown, TaxBreakdown) serialize themselves
    if hasattr(data, "to_dict"):
        return data.to_dict()
    if isinstance(data, (list, tuple)):
        return [_plain(x) for x in data]
    return data


def ok(data=None, status=200, **meta):
    payload = {"success": True, "data": _plain(data)}
    if meta:
        payload["meta"] = meta
    return jsonify(payload), status


def fail(message="Bad Request", status=400, code=None, detail=None, errors=None):
    err = {"message": message}
    if code:
        err["code"] = code
    if detail:
        err["detail"] = detail
    if errors:
        err["errors"] = errors
    return jsonify({"success": False, "error": err}), status
