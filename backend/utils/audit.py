import logging
from typing import Optional

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from models.log import Log

logger = logging.getLogger(__name__)

def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host

def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", ip=None, meta=None):
    """Store an audit entry. Runs after the audited change is committed, so a
    failure here is logged and dropped instead of failing the request."""
    try:
        entry = Log(user_id=user_id, action=action, resource=resource, status=status, ip=ip, meta=meta or {})
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not write audit log: %s %s user=%s", resource, action, user_id)
        return
    logger.info("%s %s %s user=%s meta=%s", resource, action, status, user_id, meta or {})
