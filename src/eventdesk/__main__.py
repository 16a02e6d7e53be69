"""Event desk entrypoint.

Run with:
  python -m eventdesk

Settings are checked before uvicorn starts, so a missing EVD_SECRET_KEY stops
the process with a readable message instead of a worker traceback.
"""

import os
import uvicorn

from eventdesk.config import Settings
from eventdesk.errors import ConfigurationError

def main() -> None:
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        raise SystemExit(f"eventdesk: {e.message}") from None
    host = os.getenv("EVD_HOST", "0.0.0.0")
    port = int(os.getenv("EVD_PORT", "8000"))
    reload = os.getenv("EVD_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run(
        "eventdesk.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )

if __name__ == "__main__":
    main()
