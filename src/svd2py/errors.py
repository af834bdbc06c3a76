"""
Exception taxonomy shared by the generator and the generated runtime
"""


class Svd2PyError(Exception):
    """Base class for every error raised by svd2py"""


class ConfigError(Svd2PyError):
    """Invalid configuration: unknown target tag, naming role or case"""


class ModelError(Svd2PyError):
    """Malformed normalized device description"""


class WidthMappingError(Svd2PyError):
    """A bit width cannot be mapped to an integral representation"""

    def __init__(self, width: int, what: str = "integral type") -> None:
        super().__init__(f"can't convert {width} bits into {what}")
        self.width = width


class IndexOutOfRangeError(Svd2PyError, IndexError):
    """Array accessor index is negative or not below the declared dimension"""

    def __init__(self, name: str, index: int, dim: int) -> None:
        super().__init__(f"index {index} out of range for '{name}' (dim {dim})")
        self.name = name
        self.index = index
        self.dim = dim


class UnsafeAccessError(Svd2PyError):
    """An unchecked raw write was attempted without acknowledging the risk"""


class GenerationError(Svd2PyError):
    """
    Failure to generate one item of the device

    Attributes:
        item: Dotted path of the offending peripheral/cluster/register/field
        cause: The underlying exception
    """

    def __init__(self, item: str, cause: Exception) -> None:
        super().__init__(f"{item}: {cause}")
        self.item = item
        self.cause = cause


__all__ = [
    "ConfigError",
    "GenerationError",
    "IndexOutOfRangeError",
    "ModelError",
    "Svd2PyError",
    "UnsafeAccessError",
    "WidthMappingError",
]
