from typing import Iterable

from pydantic import BaseModel
from sqlalchemy.orm import Session

from campaign_portal.core.exceptions import SlotNotFound
from campaign_portal.models import Slot


def get_slot_or_404(db: Session, slot_id: str) -> Slot:
    slot = db.get(Slot, slot_id)
    if slot is None:
        raise SlotNotFound()
    return slot


def changed_fields(data: BaseModel, nullable: Iterable[str] = ()) -> dict:
    """Fields the client actually sent. Null only clears columns listed in `nullable`."""
    nullable = set(nullable)
    return {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field in nullable
    }
