"""
Shared fixtures: a small device exercising every generator feature
"""

import copy
import importlib
import sys
from dataclasses import replace

import pytest

from svd2py.config import Config
from svd2py.exporter import Exporter
from svd2py.model import device_from_dict

DEVICE = {
    "name": "DEMO_CHIP",
    "description": "Demo device",
    "size": 32,
    "nvic_prio_bits": 3,
    "peripherals": [
        {
            "name": "UART0",
            "description": "Universal asynchronous receiver transmitter",
            "base_address": "0x4000_0000",
            "group_name": "UART",
            "interrupts": [{"name": "UART0", "value": 5, "description": "UART0 global interrupt"}],
            "registers": [
                {
                    "name": "CR1",
                    "description": "Control register 1",
                    "address_offset": 0x0,
                    "fields": [
                        {
                            "name": "EN",
                            "bit_offset": 0,
                            "bit_width": 1,
                            "description": "Enable",
                            "enumerated_values": {
                                "values": [
                                    {"name": "DISABLED", "value": 0},
                                    {"name": "ENABLED", "value": 1},
                                ]
                            },
                        },
                        {
                            "name": "MODE",
                            "bit_range": [5, 4],
                            "description": "Mode selection",
                            "enumerated_values": {
                                "values": [
                                    {"name": "Slow", "value": 0, "description": "Slow mode"},
                                    {"name": "Fast", "value": 1, "description": "Fast mode"},
                                    {"name": "Turbo", "value": 2, "description": "Turbo mode"},
                                ]
                            },
                        },
                        {
                            "name": "PRESC",
                            "bit_offset": 8,
                            "bit_width": 8,
                            "description": "Prescaler",
                            "write_constraint": {"minimum": 0, "maximum": 255},
                        },
                    ],
                },
                {
                    "name": "SR",
                    "description": "Status register",
                    "address_offset": 0x4,
                    "reset_value": "0x5",
                    "fields": [
                        {"name": "RXNE", "bit_offset": 0, "bit_width": 1, "access": "read-only"},
                        {"name": "OVR", "bit_offset": 1, "bit_width": 1, "modified_write_values": "oneToClear"},
                        {"name": "TXE", "bit_offset": 2, "bit_width": 1, "access": "read-only"},
                        {"name": "WKUP", "bit_offset": 3, "bit_width": 1, "modified_write_values": "zeroToClear"},
                    ],
                },
                {
                    "name": "DR",
                    "description": "Data register",
                    "address_offset": 0x8,
                    "access": "write-only",
                    "fields": [{"name": "DATA", "bit_range": [7, 0]}],
                },
                {
                    "name": "ID",
                    "description": "Identification register",
                    "address_offset": 0xC,
                    "access": "read-only",
                    "reset_value": "0x1234",
                    "fields": [{"name": "REV", "bit_range": [15, 0]}],
                },
                {
                    "name": "BUF%s",
                    "description": "Buffer word",
                    "address_offset": 0x10,
                    "dim": 4,
                    "dim_increment": 4,
                },
                {
                    "name": "CH[%s]",
                    "kind": "cluster",
                    "description": "Channel",
                    "address_offset": 0x20,
                    "dim": 2,
                    "dim_increment": 0x10,
                    "children": [
                        {
                            "name": "CTRL",
                            "address_offset": 0x0,
                            "fields": [
                                {"name": "START", "bit_offset": 0, "bit_width": 1, "modified_write_values": "oneToSet"},
                            ],
                        },
                        {"name": "DATA", "address_offset": 0x4, "size": 16},
                    ],
                },
            ],
        },
        {
            "name": "UART1",
            "derived_from": "UART0",
            "base_address": "0x4000_1000",
            "interrupts": [{"name": "UART1", "value": 6}],
        },
    ],
}


@pytest.fixture
def device_dict():
    return copy.deepcopy(DEVICE)


@pytest.fixture
def device(device_dict):
    return device_from_dict(device_dict)


@pytest.fixture
def generate(tmp_path, device):
    """Export a device into ``tmp_path`` and import the generated package"""
    imported = []

    def _generate(config=None, dev=None, subdir="out"):
        config = replace(config or Config(), output_dir=tmp_path / subdir)
        result = Exporter(config).export(dev or device)
        sys.path.insert(0, str(result.package.parent))
        importlib.invalidate_caches()
        name = result.package.name
        imported.append((name, str(result.package.parent)))
        _forget(name)
        return importlib.import_module(name), result

    yield _generate

    for name, path in imported:
        _forget(name)
        if path in sys.path:
            sys.path.remove(path)


def _forget(package):
    for module in [m for m in sys.modules if m == package or m.startswith(package + ".")]:
        del sys.modules[module]
