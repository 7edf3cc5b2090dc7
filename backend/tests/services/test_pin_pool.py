# tests/services/test_pin_pool.py

import pytest

from campaign_portal.core.config import settings
from campaign_portal.core.exceptions import PinPoolExhausted, SlotNotFound
from campaign_portal.models import Attendance, PinCode
from campaign_portal.services.attendance import attendance_gate
from campaign_portal.services.pin_pool import pin_pool

from tests.utils.factories import (
    create_agent,
    create_campaign,
    create_pins,
    create_registered_invitation,
    create_slot,
)
from tests.utils.interleave import run_after_call


def test_generate_creates_unique_six_digit_codes(db):
    slot = create_slot(db, create_campaign(db))

    pins = pin_pool.generate(db, slot.id, 50)

    codes = [p.code for p in pins]
    assert len(codes) == 50
    assert len(set(codes)) == 50
    assert all(len(c) == 6 and c.isdigit() for c in codes)
    assert all(not p.is_used and p.linked_nric is None for p in pins)


def test_generate_skips_codes_already_in_slot(db, monkeypatch):
    monkeypatch.setattr(settings, "PIN_CODE_MIN", 100000)
    monkeypatch.setattr(settings, "PIN_CODE_MAX", 100004)
    slot = create_slot(db, create_campaign(db))
    create_pins(db, slot, ["100000", "100001"])

    pins = pin_pool.generate(db, slot.id, 3)

    assert sorted(p.code for p in pins) == ["100002", "100003", "100004"]


def test_generate_samples_free_codes_in_dense_slot(db, monkeypatch):
    monkeypatch.setattr(settings, "PIN_CODE_MIN", 100000)
    monkeypatch.setattr(settings, "PIN_CODE_MAX", 100009)
    slot = create_slot(db, create_campaign(db))
    create_pins(db, slot, [str(n) for n in range(100000, 100006)])

    def redraw():
        raise AssertionError("a mostly full slot should not be filled by redrawing")

    monkeypatch.setattr("campaign_portal.services.pin_pool.generate_pin_code", redraw)

    pins = pin_pool.generate(db, slot.id, 4)

    assert sorted(p.code for p in pins) == ["100006", "100007", "100008", "100009"]


def test_generate_raises_when_pool_exhausted(db, monkeypatch):
    monkeypatch.setattr(settings, "PIN_CODE_MIN", 100000)
    monkeypatch.setattr(settings, "PIN_CODE_MAX", 100004)
    slot = create_slot(db, create_campaign(db))
    pin_pool.generate(db, slot.id, 3)

    with pytest.raises(PinPoolExhausted) as exc_info:
        pin_pool.generate(db, slot.id, 3)

    assert exc_info.value.details == {"requested": 3, "available": 2}
    # Nothing from the failed batch was written
    assert db.query(PinCode).filter(PinCode.slot_id == slot.id).count() == 3


def test_same_code_allowed_in_different_slots(db):
    campaign = create_campaign(db)
    slot_a = create_slot(db, campaign, day_of_week=1)
    slot_b = create_slot(db, campaign, day_of_week=3)

    create_pins(db, slot_a, ["123456"])
    create_pins(db, slot_b, ["123456"])

    assert db.query(PinCode).filter(PinCode.code == "123456").count() == 2


def test_generate_unknown_slot(db):
    with pytest.raises(SlotNotFound):
        pin_pool.generate(db, "missing", 1)


def test_delete_unused_keeps_claimed_codes(db):
    slot = create_slot(db, create_campaign(db))
    claimed, free_a, free_b = create_pins(db, slot, ["111111", "222222", "333333"])
    claimed.is_used = True
    claimed.linked_nric = "S1234567A"
    db.commit()

    deleted = pin_pool.delete_unused(db, slot.id)

    assert deleted == 2
    remaining = db.query(PinCode).filter(PinCode.slot_id == slot.id).all()
    assert [p.code for p in remaining] == ["111111"]


def test_delete_all_detaches_attendance(db):
    slot = create_slot(db, create_campaign(db))
    agent = create_agent(db)
    invitation = create_registered_invitation(db, agent, slot, "S1234567A", "91234567")
    create_pins(db, slot, ["111111", "222222"])
    attendance = attendance_gate.check_in(db, slot.id, "111111", "S1234567A")

    deleted = pin_pool.delete_all(db, slot.id)

    assert deleted == 2
    db.expire_all()
    record = db.get(Attendance, attendance.id)
    assert record.pin_code_id is None
    assert record.invitation_id == invitation.id


def test_inventory_counts_and_invalidation(db, monkeypatch):
    monkeypatch.setattr(settings, "PIN_CODE_MIN", 100000)
    monkeypatch.setattr(settings, "PIN_CODE_MAX", 100009)
    slot = create_slot(db, create_campaign(db))
    agent = create_agent(db)
    create_registered_invitation(db, agent, slot, "S1234567A", "91234567")

    assert pin_pool.inventory(db, slot.id) == {"slot_id": slot.id, "total": 0, "used": 0, "unused": 0}

    pin_pool.generate(db, slot.id, 4)
    create_pins(db, slot, ["999999"])
    # Rows written behind the pool's back are not visible until invalidated
    assert pin_pool.inventory(db, slot.id)["total"] == 4
    pin_pool.invalidate(slot.id)
    assert pin_pool.inventory(db, slot.id)["total"] == 5

    attendance_gate.check_in(db, slot.id, "999999", "S1234567A")

    assert pin_pool.inventory(db, slot.id) == {"slot_id": slot.id, "total": 5, "used": 1, "unused": 4}


def test_inventory_counted_during_a_claim_is_not_cached(db, other_db, monkeypatch):
    slot = create_slot(db, create_campaign(db))
    slot_id = slot.id
    create_registered_invitation(db, create_agent(db), slot, "S1234567A", "91234567")
    create_pins(db, slot, ["111111", "222222"])
    # A check-in commits and invalidates after the counts were read
    run_after_call(
        monkeypatch, pin_pool, "_count_codes",
        lambda: attendance_gate.check_in(other_db, slot_id, "111111", "S1234567A"),
    )

    assert pin_pool.inventory(db, slot_id)["used"] == 0
    assert pin_pool.inventory(db, slot_id) == {"slot_id": slot_id, "total": 2, "used": 1, "unused": 1}
