from collections.abc import Callable

from ..log import get_logger
from .base import MasterBase

logger = get_logger(__name__)

ReadCallback = Callable[[int, int], int]
WriteCallback = Callable[[int, int, int], None]


class CallbackMaster(MasterBase):
    """
    Forwards register loads and stores to user functions

    Useful to drive the generated API against a debugger session, a simulator
    or a device file. Loaded values wider than the register are truncated.
    """

    def __init__(
        self,
        read_callback: ReadCallback | None = None,
        write_callback: WriteCallback | None = None,
    ) -> None:
        """
        Args:
            read_callback: Function(address, width_bytes) -> value
            write_callback: Function(address, value, width_bytes) -> None
        """
        self.read_callback = read_callback
        self.write_callback = write_callback

    def read(self, address: int, width: int) -> int:
        if self.read_callback is None:
            raise RuntimeError("No read callback configured")
        value = self.read_callback(address, width) & ((1 << (width * 8)) - 1)
        logger.debug("load  %#010x -> %#x", address, value)
        return value

    def write(self, address: int, value: int, width: int) -> None:
        if self.write_callback is None:
            raise RuntimeError("No write callback configured")
        logger.debug("store %#010x <- %#x", address, value)
        self.write_callback(address, value, width)
