"""
JSON endpoints behind the cascading Region -> District -> Ward -> Village dropdowns.
"""
from flask import Blueprint, jsonify, request

from app.portal.locations import list_districts, list_regions, list_villages, list_wards

bp = Blueprint("locations", __name__)


def _arg(name: str) -> str | None:
    return (request.args.get(name) or "").strip() or None


@bp.get("/regions")
def regions():
    return jsonify(list_regions())


@bp.get("/districts")
def districts():
    return jsonify(list_districts(_arg("region")))


@bp.get("/wards")
def wards():
    return jsonify(list_wards(_arg("region"), _arg("district")))


@bp.get("/villages")
def villages():
    return jsonify(list_villages(_arg("region"), _arg("district"), _arg("ward")))
