"""Runtime imported by generated device packages"""

from . import generic
from .generic import Peripheral, Reg, RegisterArray, RegisterBlock, check_index

__all__ = ["Peripheral", "Reg", "RegisterArray", "RegisterBlock", "check_index", "generic"]
