import os
from typing import Optional

TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Read a boolean from the environment (1, true, yes, on are truthy).
    Returns default when the variable is unset or blank.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return val.strip().lower() in TRUTHY


def env_str(name: str) -> Optional[str]:
    val = os.getenv(name)
    if val is None or not val.strip():
        return None
    return val.strip()
