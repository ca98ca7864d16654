import os
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent
DATA_DIR = Path(os.environ.get("REFERENCE_DATA_DIR", str(APP_DIR / "data")))
SCHEMA_DIR = Path(os.environ.get("REFERENCE_SCHEMA_DIR", str(APP_DIR / "schemas")))
VALIDATE_ON_LOAD = os.environ.get("REFERENCE_VALIDATE_ON_LOAD", "1").strip().lower() in ("1", "true", "yes")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
