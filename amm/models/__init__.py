"""Pydantic models for events, API payloads and shared types."""

from amm.models import events
from amm.models.types import Address, Uint256, is_valid_address, normalize_address

__all__ = ["events", "Address", "Uint256", "is_valid_address", "normalize_address"]
