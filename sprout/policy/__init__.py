"""sprout Policy Module - command policy loading and validation."""

from .policy_loader import (
    CommandProfile,
    PolicyLoader,
    PolicyValidationError,
    get_policy_loader,
    reset_policy_loader,
)

__all__ = [
    "CommandProfile",
    "PolicyLoader",
    "PolicyValidationError",
    "get_policy_loader",
    "reset_policy_loader",
]
