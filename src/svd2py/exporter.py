"""
Main exporter implementation for svd2py
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .config import Config
from .errors import GenerationError
from .ir import DeviceIR, IRBuilder
from .log import get_logger
from .model import Device
from .render import TemplateRenderer

logger = get_logger(__name__)


@dataclass
class ExportResult:
    """Files written by an export and the items that could not be generated"""

    package: Path
    files: List[Path] = field(default_factory=list)
    errors: List[GenerationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class Exporter:
    """
    Export a device description to a Python register access package
    """

    def __init__(self, config: Optional[Config] = None) -> None:
        self.config = config or Config()
        self.renderer = TemplateRenderer()

    def build(self, device: Device) -> DeviceIR:
        return IRBuilder(self.config).build(device)

    def export(self, device: Device, output_dir: Optional[str | Path] = None) -> ExportResult:
        """
        Export ``device`` as a package below ``output_dir``

        Parameters:
            device: Device description
            output_dir: Directory receiving the package (default: ``config.output_dir``)

        Items that fail to generate are logged, left out of the package and
        reported in :attr:`ExportResult.errors`; the rest is still written.
        """
        ir = self.build(device)
        package_dir = Path(output_dir if output_dir is not None else self.config.output_dir) / ir.package
        result = ExportResult(package=package_dir, errors=list(ir.errors))

        context = {"device": ir, "address_shift": ir.address_shift}
        destination = package_dir / "__init__.py"
        self.renderer.render_to_path("__init__.py.jinja", context, destination)
        result.files.append(destination)

        for module in ir.modules:
            logger.debug("Rendering module %s", module.name)
            destination = package_dir / f"{module.name}.py"
            self.renderer.render_to_path("peripheral.py.jinja", dict(context, module=module), destination)
            result.files.append(destination)

        logger.info(
            "Generated %s: %d peripherals in %d modules, %d errors",
            ir.package,
            len(ir.peripherals),
            len(ir.modules),
            len(result.errors),
        )
        return result


__all__ = ["ExportResult", "Exporter"]
