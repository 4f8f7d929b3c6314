"""Dispatch layer: executes routing decisions against backend adapters."""

from .dispatcher import ProviderDispatcher, dispatch_timeout_from_env

__all__ = ["ProviderDispatcher", "dispatch_timeout_from_env"]
