# studysphere/routes/health.py
import logging

from flask import Blueprint, jsonify
from sqlalchemy import text

from studysphere.models import db

logger = logging.getLogger(__name__)

bp = Blueprint("health", __name__)


@bp.get("/healthz")
def healthz():
    """
    Healthcheck (no auth)
    ---
    tags:
      - Health
    responses:
      200:
        description: OK
      503:
        description: Database unreachable
    """
    try:
        db.session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("healthcheck: database unreachable: %s", e)
        db.session.rollback()
        return jsonify({"ok": False, "database": "down"}), 503
    return jsonify({"ok": True, "database": "up"}), 200
