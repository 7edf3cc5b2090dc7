import secrets
import uuid
from typing import Iterable, List

from campaign_portal.core.config import settings

_system_random = secrets.SystemRandom()


def generate_registration_token() -> str:
    """Generate an opaque, globally unique invitation token"""
    return str(uuid.uuid4())


def generate_pin_code() -> str:
    """Draw a 6-digit PIN from [PIN_CODE_MIN, PIN_CODE_MAX]"""
    span = settings.PIN_CODE_MAX - settings.PIN_CODE_MIN + 1
    return str(settings.PIN_CODE_MIN + secrets.randbelow(span))


def sample_pin_codes(taken: Iterable[str], count: int) -> List[str]:
    """Draw `count` distinct PINs from the part of the range not in `taken`"""
    taken = set(taken)
    free = [
        str(n)
        for n in range(settings.PIN_CODE_MIN, settings.PIN_CODE_MAX + 1)
        if str(n) not in taken
    ]
    return _system_random.sample(free, count)


def pin_pool_size() -> int:
    return settings.PIN_CODE_MAX - settings.PIN_CODE_MIN + 1
