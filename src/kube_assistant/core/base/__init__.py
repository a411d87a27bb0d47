"""Model backend abstraction."""

from .base import ModelBackend, ModelReply

__all__ = ["ModelBackend", "ModelReply"]
