import logging
import threading
from typing import Dict, List

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campaign_portal.core.exceptions import Conflict, PinPoolExhausted
from campaign_portal.db.session import transaction
from campaign_portal.models import Attendance, PinCode
from campaign_portal.services.common import get_slot_or_404
from campaign_portal.utils.crypto import generate_pin_code, pin_pool_size, sample_pin_codes

logger = logging.getLogger(__name__)


def _pin_conflict(e: IntegrityError) -> Conflict:
    # Another generation for the same slot committed one of our codes first
    return Conflict("PIN code collision with a concurrent generation. Please try again.")


class PinPoolService:
    """
    Generates, lists and retires the 6-digit PIN codes of a slot.

    Codes are unique within their slot only. The per-slot inventory counts
    are cached in-process; anything that changes a slot's codes must call
    `invalidate(slot_id)`.
    """

    def __init__(self):
        self._inventory_cache: Dict[str, dict] = {}
        # Bumped on every invalidate; a snapshot is only cached if the
        # generation it was counted under is still current
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()

    def generate(self, db: Session, slot_id: str, count: int) -> List[PinCode]:
        get_slot_or_404(db, slot_id)

        existing = {
            code for (code,) in db.query(PinCode.code).filter(PinCode.slot_id == slot_id)
        }
        available = pin_pool_size() - len(existing)
        if count > available:
            raise PinPoolExhausted(count, available)

        if len(existing) * 2 > pin_pool_size():
            # Dense slot: sample the free codes directly instead of redrawing
            codes = sample_pin_codes(existing, count)
        else:
            # Redraw until the code is new to both the slot and this batch
            codes = []
            drawn = set()
            while len(codes) < count:
                code = generate_pin_code()
                if code in existing or code in drawn:
                    continue
                drawn.add(code)
                codes.append(code)

        pins = [PinCode(slot_id=slot_id, code=code, linked_nric=None, is_used=False) for code in codes]

        # The whole batch is inserted or none of it is
        with transaction(db, _pin_conflict):
            db.add_all(pins)

        self.invalidate(slot_id)
        logger.info(f"🔢 Generated {count} PIN codes for slot {slot_id}")
        return pins

    def list_codes(self, db: Session, slot_id: str) -> List[PinCode]:
        get_slot_or_404(db, slot_id)
        return (
            db.query(PinCode)
            .filter(PinCode.slot_id == slot_id)
            .order_by(PinCode.code.asc())
            .all()
        )

    def delete_unused(self, db: Session, slot_id: str) -> int:
        """Remove codes nobody has claimed; claimed codes are kept."""
        get_slot_or_404(db, slot_id)
        with transaction(db):
            deleted = (
                db.query(PinCode)
                .filter(
                    PinCode.slot_id == slot_id,
                    PinCode.is_used.is_(False),
                    PinCode.linked_nric.is_(None),
                )
                .delete(synchronize_session=False)
            )
        self.invalidate(slot_id)
        logger.info(f"🗑️ Deleted {deleted} unused PIN codes for slot {slot_id}")
        return deleted

    def purge(self, db: Session, slot_id: str) -> int:
        """
        Remove every code of the slot inside the caller's transaction.
        Attendance rows keep their history but lose the PIN reference.
        The caller commits and then calls `invalidate(slot_id)`.
        """
        slot_pins = select(PinCode.id).where(PinCode.slot_id == slot_id)
        (
            db.query(Attendance)
            .filter(Attendance.pin_code_id.in_(slot_pins))
            .update({Attendance.pin_code_id: None}, synchronize_session=False)
        )
        return (
            db.query(PinCode)
            .filter(PinCode.slot_id == slot_id)
            .delete(synchronize_session=False)
        )

    def delete_all(self, db: Session, slot_id: str) -> int:
        get_slot_or_404(db, slot_id)
        with transaction(db):
            deleted = self.purge(db, slot_id)
        self.invalidate(slot_id)
        logger.info(f"🗑️ Deleted all {deleted} PIN codes for slot {slot_id}")
        return deleted

    def _count_codes(self, db: Session, slot_id: str) -> Dict[bool, int]:
        return dict(
            db.query(PinCode.is_used, func.count(PinCode.id))
            .filter(PinCode.slot_id == slot_id)
            .group_by(PinCode.is_used)
            .all()
        )

    def inventory(self, db: Session, slot_id: str) -> dict:
        with self._lock:
            cached = self._inventory_cache.get(slot_id)
            generation = self._generations.get(slot_id, 0)
        if cached is not None:
            return dict(cached)

        get_slot_or_404(db, slot_id)
        counts = self._count_codes(db, slot_id)
        used = counts.get(True, 0)
        unused = counts.get(False, 0)
        snapshot = {"slot_id": slot_id, "total": used + unused, "used": used, "unused": unused}

        with self._lock:
            # An invalidate that landed while we were counting wins
            if self._generations.get(slot_id, 0) == generation:
                self._inventory_cache[slot_id] = snapshot
        return dict(snapshot)

    def invalidate(self, slot_id: str) -> None:
        with self._lock:
            self._inventory_cache.pop(slot_id, None)
            self._generations[slot_id] = self._generations.get(slot_id, 0) + 1

    def clear_cache(self) -> None:
        with self._lock:
            self._inventory_cache.clear()
            self._generations.clear()


# Singleton instance
pin_pool = PinPoolService()
