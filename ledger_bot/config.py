import json
import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

REQUIRED_VARS = [
    "LINE_BOT_CHANNEL_SECRET",
    "LINE_BOT_ACCESS_TOKEN",
    "GOOGLE_DOC_ID",
    "GOOGLE_JSON_KEY",
]

TRUTHY = ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class Config:
    """Settings read once at startup and handed to every collaborator"""
    channel_secret: str
    channel_access_token: str
    document_id: str
    google_credentials: dict
    category_sheet: str = "Categories"
    debug: bool = False
    store_timeout: float = 15.0
    port: int = 80

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ

        missing = [name for name in REQUIRED_VARS if not env.get(name)]
        if missing:
            raise ValueError(f"Missing required environment variables: {', '.join(missing)}")

        try:
            credentials = json.loads(env["GOOGLE_JSON_KEY"])
        except json.JSONDecodeError:
            raise ValueError("GOOGLE_JSON_KEY must be valid JSON")

        try:
            store_timeout = float(env.get("STORE_TIMEOUT", 15.0))
            port = int(env.get("PORT", 80))
        except ValueError:
            raise ValueError("STORE_TIMEOUT and PORT must be numbers")

        debug = env.get("DEBUG", "").strip().lower() in TRUTHY
        if debug:
            logger.warning("DEBUG is on - replies will only be logged, not sent")

        return cls(
            channel_secret=env["LINE_BOT_CHANNEL_SECRET"],
            channel_access_token=env["LINE_BOT_ACCESS_TOKEN"],
            document_id=env["GOOGLE_DOC_ID"],
            google_credentials=credentials,
            category_sheet=env.get("CATEGORY_SHEET", "Categories"),
            debug=debug,
            store_timeout=store_timeout,
            port=port,
        )
