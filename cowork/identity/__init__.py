"""Local numeric identities for remote records."""

from .codec import MAX_ID, is_valid_id, stable_id
from .registry import IdRegistry, RegistrySet

__all__ = ["MAX_ID", "is_valid_id", "stable_id", "IdRegistry", "RegistrySet"]
