from typing import NamedTuple

from .base import MasterBase


class Transaction(NamedTuple):
    op: str
    address: int
    value: int
    width: int


class MockMaster(MasterBase):
    """
    Mock Master for testing without hardware

    Simulates memory in a dictionary and records every load and store in order
    """

    def __init__(self) -> None:
        self.memory: dict[int, int] = {}
        self.transactions: list[Transaction] = []

    def read(self, address: int, width: int) -> int:
        """Read from simulated memory"""
        value = self.memory.get(address, 0)
        self.transactions.append(Transaction("read", address, value, width))
        return value

    def write(self, address: int, value: int, width: int) -> None:
        """Write to simulated memory"""
        mask = (1 << (width * 8)) - 1
        self.memory[address] = value & mask
        self.transactions.append(Transaction("write", address, value & mask, width))

    def reads(self) -> list[Transaction]:
        return [t for t in self.transactions if t.op == "read"]

    def writes(self) -> list[Transaction]:
        return [t for t in self.transactions if t.op == "write"]

    def reset(self) -> None:
        """Clear all stored values and the transaction log"""
        self.memory.clear()
        self.transactions.clear()
