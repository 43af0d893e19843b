from flask import Blueprint, jsonify
from sqlalchemy import text

from models import db

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health():
    # OperationalError from the ping is answered as 503 by the app error handler
    db.session.execute(text("SELECT 1"))
    return jsonify(status="ok"), 200
