"""Core configuration and utilities for rowlogic."""

from rowlogic.core.config import settings
from rowlogic.core.logging import setup_logging

__all__ = ["settings", "setup_logging"]
