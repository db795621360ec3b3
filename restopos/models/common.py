from datetime import datetime, timezone
from pydantic import BaseModel, Field


def utcnow() -> datetime:
    # stored naive: the driver hands datetimes back without tzinfo
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


class TenantDocument(BaseModel):
    tenant_id: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def to_document(self) -> dict:
        return self.model_dump(mode="python")
