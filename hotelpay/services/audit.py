from sqlalchemy.ext.asyncio import AsyncSession
from hotelpay.models.models import AuditLog


async def log_audit(db: AsyncSession, action: str, object_type: str = None, object_id: str = None, detail: dict = None):
    audit = AuditLog(
        action=action,
        object_type=object_type,
        object_id=object_id,
        detail=detail,
    )
    db.add(audit)
    # do not commit here; caller should include in transaction context
    return audit
