from .base import AnchorPolicy, canonical_value, logic_level
from .first_change import FirstChangeAnchor
from .edges import EdgeAnchor

POLICY_NAMES = ("first-change", "rise", "fall")


def policy_from_name(name: str, occurrence: int = 1) -> AnchorPolicy:
    if name == "first-change":
        return FirstChangeAnchor()
    if name in ("rise", "fall"):
        return EdgeAnchor(name, occurrence)
    raise ValueError(f"Unknown anchor policy '{name}', expected one of {POLICY_NAMES}")


DEFAULT_POLICY: AnchorPolicy = FirstChangeAnchor()
