"""Public client interface."""

from .client import MatalinoRouterClient

__all__ = ["MatalinoRouterClient"]
