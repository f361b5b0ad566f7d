import os

def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r})")
    if value < 0:
        raise RuntimeError(f"{name} cannot be negative")
    return value


API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

# Games may only be removed shortly after they are recorded (undo window).
GAME_DELETE_WINDOW_SECONDS = _int_env("GAME_DELETE_WINDOW_SECONDS", 60)


def get_admin_password() -> str | None:
    """Return the shared admin password, read at call time so tests can patch it."""

    return os.getenv("ADMIN_PASSWORD") or None


# Inclusive range of calendar years accepted for yearly results.
MIN_YEAR = 1900
MAX_YEAR = 9999
