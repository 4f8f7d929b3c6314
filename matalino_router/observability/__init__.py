"""Observability helpers for the routing core."""

from .logging import RoutingLogger

__all__ = ["RoutingLogger"]
