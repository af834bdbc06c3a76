from abc import ABC, abstractmethod


class MasterBase(ABC):
    """
    Base class for Master interfaces

    A master performs the actual memory operations of a register accessor.
    Every call is one load or one store; masters never cache or batch.
    """

    @abstractmethod
    def read(self, address: int, width: int) -> int:
        """
        Load a value from the given address

        Args:
            address: Absolute address to read from
            width: Width of the register in bytes

        Returns:
            Value read from the address
        """

    @abstractmethod
    def write(self, address: int, value: int, width: int) -> None:
        """
        Store a value to the given address

        Args:
            address: Absolute address to write to
            value: Value to write
            width: Width of the register in bytes
        """
