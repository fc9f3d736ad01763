import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv(".env", override=True)


@dataclass(frozen=True)
class Settings:
    # Guesstimate
    GUESSTIMATE_API_URL: str   = os.getenv("GUESSTIMATE_API_URL", "https://guesstimate.herokuapp.com/spaces")
    GUESSTIMATE_REFERRER: str  = os.getenv("GUESSTIMATE_REFERRER", "https://www.getguesstimate.com/")
    GUESSTIMATE_TOKEN_KEY: str = os.getenv("GUESSTIMATE_TOKEN_KEY", "Guesstimate-Testme")  # browser localStorage key
    GUESSTIMATE_TOKEN: str     = os.getenv("GUESSTIMATE_TOKEN", "")

    # Diagrams
    MERMAID_INK_URL: str       = os.getenv("MERMAID_INK_URL", "https://mermaid.ink")

    # Local API (used by the watcher)
    API_URL: str               = os.getenv("API_URL", "http://localhost:8000")

    LOG_LEVEL: str             = os.getenv("LOG_LEVEL", "INFO")
