from typing import Callable


def run_after_call(monkeypatch, target, name: str, competitor: Callable[[], object], call: int = 1) -> list:
    """
    Wrap `target.name` so that `competitor` runs once, right after the
    `call`-th invocation returns. This places a second request between a
    service's read and its conditional write. Calls made by the competitor
    itself pass straight through.

    Returns a list that receives the competitor's return value.
    """
    original = getattr(target, name)
    seen = []
    results = []

    def wrapper(*args, **kwargs):
        result = original(*args, **kwargs)
        if not results and len(seen) < call:
            seen.append(True)
            if len(seen) == call:
                results.append(competitor())
        return result

    monkeypatch.setattr(target, name, wrapper)
    return results
