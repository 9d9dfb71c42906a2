"""Admin blueprint; every route requires the admin role."""

from __future__ import annotations

from flask import Blueprint, jsonify

from models.one_time_token import EmailVerificationToken
from models.user import User
from utils.auth import admin_required

admin_bp = Blueprint("admin", __name__)


@admin_bp.route("/app-info", methods=["GET"])
@admin_required
def app_info():
    """Return account counters for the admin dashboard."""

    EmailVerificationToken.purge_expired()

    return jsonify(
        {
            "appInfo": {
                "userCount": User.query.count(),
                "verifiedUserCount": User.query.filter_by(is_verified=True).count(),
                "pendingVerificationCount": EmailVerificationToken.query.count(),
            }
        }
    )
