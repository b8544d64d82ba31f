# stdlib
import os
from pathlib import Path
from typing import Optional
# thirdpartylib
from dotenv import load_dotenv

def fetch_var(name: str, default: Optional[str] = None) -> str:
    """Fetch an environment variable, or its default, or fail loudly."""
    value = os.environ.get(name)
    if value is None or not value.strip():
        if default is None:
            raise RuntimeError(
                f"Environment variable '{name}' is not set. "
                "Create a .env file or define the variable."
            )
        return default
    return value.strip()

def fetch_int(name: str, default: Optional[int] = None) -> Optional[int]:
    """Fetch an integer environment variable."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise RuntimeError(
            f"Environment variable '{name}' must be an integer, got {raw!r}."
        ) from e

def fetch_bool(name: str, default: bool = False) -> bool:
    """Fetch a boolean environment variable (1/0, true/false, yes/no)."""
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise RuntimeError(
        f"Environment variable '{name}' must be a boolean, got {raw!r}."
    )


# Load env variables
load_dotenv()

FORECAST_MONTHS = fetch_int("SGI_FORECAST_MONTHS", 72)
DEFAULT_PROFILE = fetch_var("SGI_DEFAULT_PROFILE", "GRU")
VERBOSITY = fetch_int("SGI_VERBOSITY", 0)
LOG_DIR = Path(fetch_var("SGI_LOG_DIR", str(Path.cwd())))
WRITE_LOG = fetch_bool("SGI_WRITE_LOG", False)
RANDOM_SEED = fetch_int("SGI_RANDOM_SEED")

if VERBOSITY not in (0, 1, 2):
    raise RuntimeError(
        f"Environment variable 'SGI_VERBOSITY' must be 0, 1 or 2, "
        f"got {VERBOSITY}."
    )
