"""Command line interface for svd2py."""

from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import Config, Target, load_config
from .errors import Svd2PyError
from .exporter import Exporter
from .log import setup_logging
from .model import load_device


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("input_file", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-c", "--config", "config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML or JSON config file")
@click.option("-o", "--output", "output_dir", type=click.Path(file_okay=False, path_type=Path), help="Output directory")
@click.option("--target", type=click.Choice([str(t) for t in Target]), help="Target architecture")
@click.option("--raw-access/--no-raw-access", default=None, help="Compute register addresses on every access")
@click.option("--array-proxy/--no-array-proxy", default=None, help="Emit arrays as bounds-checked formulas")
@click.option("--keep-list/--no-keep-list", default=None, help="Keep %s lists as separate accessors")
@click.option("--ignore-groups/--no-ignore-groups", default=None, help="Don't prefix registers with their alternate group")
@click.option("--address-shift", type=click.IntRange(min=0), default=None, help="Right shift applied to addresses")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level (default: INFO)",
)
@click.option("-q", "--quiet", is_flag=True, help="Plain log messages")
@click.version_option(__version__, prog_name="svd2py")
def main(
    input_file: Optional[Path],
    config_file: Optional[Path],
    output_dir: Optional[Path],
    target: Optional[str],
    raw_access: Optional[bool],
    array_proxy: Optional[bool],
    keep_list: Optional[bool],
    ignore_groups: Optional[bool],
    address_shift: Optional[int],
    log_level: Optional[str],
    quiet: bool,
) -> None:
    """Generate a Python register access package from a normalized device description"""
    try:
        config = load_config(config_file) if config_file else Config()
    except Svd2PyError as exc:
        raise click.ClickException(str(exc)) from exc

    overrides = {
        "input": input_file,
        "output_dir": output_dir,
        "target": Target.parse(target) if target else None,
        "raw_access": raw_access,
        "array_proxy": array_proxy,
        "keep_list": keep_list,
        "ignore_groups": ignore_groups,
        "base_address_shift": address_shift,
        "log_level": log_level,
    }
    config = replace(config, **{k: v for k, v in overrides.items() if v is not None})
    setup_logging(config.log_level or "INFO", quiet)

    if config.input is None:
        raise click.UsageError("An input file must be given on the command line or in the config file")

    try:
        device = load_device(config.input)
    except Svd2PyError as exc:
        raise click.ClickException(str(exc)) from exc

    result = Exporter(config).export(device)
    for error in result.errors:
        click.echo(f"error: {error}", err=True)
    if not result.ok:
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
