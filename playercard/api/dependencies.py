"""Shared FastAPI dependencies."""

from playercard.config import settings
from playercard.services.warcraft_logs import WarcraftLogsClient, WarcraftLogsConfig


def get_warcraft_logs_client() -> WarcraftLogsClient:
    """Build a Warcraft Logs client from the process settings."""
    return WarcraftLogsClient(WarcraftLogsConfig.from_settings(settings))
