"""Core routing logic for the Matalino router.

This package contains the provider-agnostic core organized into layers:
- analysis: Prompt analysis and validation
- registry: Model catalogue, pricing and availability
- routing: Decision table and routing policy
"""

__all__ = []
