from flask import current_app
from sqlalchemy import func
from configs import db


def next_number(column, config_key: str) -> str:
    """Next human-readable document number, e.g. RFQ-00001."""
    prefix = current_app.config[config_key]
    seq = (db.session.query(func.count(column)).scalar() or 0) + 1
    candidate = f"{prefix}-{seq:05d}"
    # deleted rows leave gaps; skip numbers that are still taken
    while db.session.query(column).filter(column == candidate).first() is not None:
        seq += 1
        candidate = f"{prefix}-{seq:05d}"
    return candidate
