"""
Masters: memory transports the generated register accessors load and store through
"""

from .base import MasterBase
from .callback import CallbackMaster
from .mock import MockMaster

__all__ = ["CallbackMaster", "MasterBase", "MockMaster"]
