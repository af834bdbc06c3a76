"""
svd2py
Generate Python register access packages from normalized device descriptions
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("svd2py")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"


__all__ = ["Config", "Exporter", "ExportResult", "load_config", "load_device", "sanitize"]


def __getattr__(name: str) -> object:
    if name in ("Exporter", "ExportResult"):
        from . import exporter

        return getattr(exporter, name)
    if name in ("Config", "load_config"):
        from . import config

        return getattr(config, name)
    if name == "load_device":
        from .model import load_device

        return load_device
    if name == "sanitize":
        from .naming import sanitize

        return sanitize
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
