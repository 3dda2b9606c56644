"""Settings for the review service."""

from dotenv import load_dotenv

from .config import Settings, get_settings

# Provider SDKs read their keys (OPENAI_API_KEY, ...) straight from os.environ.
load_dotenv(override=False)

__all__ = ["Settings", "get_settings"]
