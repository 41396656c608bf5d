"""Exception types raised across the drift report pipeline."""
from typing import Optional


class DriftError(Exception):
    """Base class for every error raised by time-since-deploy."""


class ConfigError(DriftError):
    """Missing or malformed configuration (project, token, config file)."""


class GitLabAPIError(DriftError):
    """Transport failure or non-2xx response from the GitLab API."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ResolveError(DriftError):
    """Project resolution or environment listing failed; fatal for the run."""
