from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from models import db

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health():
    status = {"status": "ok", "database": "online"}
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        status.update(status="degraded", database="offline", database_error=str(exc))
        return jsonify(status), 503
    return jsonify(status), 200
