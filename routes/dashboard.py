from flask import Blueprint, jsonify

from security.rbac import require_admin
from services.dashboard import build_stats

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/dashboard")


@dashboard_bp.get("/stats")
@require_admin
def stats():
    return jsonify(build_stats()), 200
