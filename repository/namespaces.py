# repository/namespaces.py
from typing import Final

ROOT: Final[str] = "tafcha"

RATE_LIMITS: Final[str] = f"{ROOT}:ratelimit"  # e.g. tafcha:ratelimit:write:<client>:<window>
