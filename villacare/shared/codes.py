"""Human-friendly codes and slugs"""

import random
import re
import secrets
from datetime import datetime


def slug_base(name: str) -> str:
    """First word of a name, lowercased, letters and digits only"""
    first = (name or "").strip().lower().split(" ")[0]
    return re.sub(r"[^a-z0-9]", "", first)


def slug_candidate(name: str, attempt: int) -> str:
    """Slug for the given attempt: the bare base first, then base + random 0..999"""
    base = slug_base(name) or "cleaner"
    if attempt == 0:
        return base
    return f"{base}{random.randint(0, 999)}"


def generate_referral_code(name: str) -> str:
    """e.g. "MARI2026042" from "Maria Lopez" """
    clean = re.sub(r"[^A-Z]", "X", (name or "USER").split(" ")[0].upper()[:4])
    return f"{clean}{datetime.utcnow().year}{random.randint(0, 999):03d}"


def generate_onboarding_token() -> str:
    return secrets.token_hex(32)
