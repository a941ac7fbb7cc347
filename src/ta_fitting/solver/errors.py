from __future__ import annotations


class ValidationError(ValueError):
    """Raised when a solver session is constructed from inconsistent inputs."""
