# launcher.py
import logging
import sys

import uvicorn
from dotenv import load_dotenv

# --- Constante ---
ENV_FILE = ".env"

load_dotenv(ENV_FILE)

from clientdesk.core.config import check_secret_key, get_settings  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - [%(name)s] - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("launcher")


def main() -> int:
    settings = get_settings()
    try:
        check_secret_key(settings)
    except RuntimeError as e:
        logger.critical(str(e))
        return 1

    logger.info(f"Server running on port {settings.port}")
    uvicorn.run(
        "clientdesk.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level="info",
        server_header=False,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
