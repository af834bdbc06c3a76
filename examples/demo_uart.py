#!/usr/bin/env python3
"""
Demonstration of a generated register access package

This script exports ``demo_uart.yaml`` and drives the generated API through a
MockMaster:
- Typed field writes chained in a single store: uart.cr.write(...)
- Read-modify-write: uart.cr.modify(...)
- Write-one-to-clear status bits that other writes leave alone
- Register arrays: uart.fifo(n), uart.fifo_iter()
"""

import importlib
import sys
import tempfile
from pathlib import Path

from svd2py import Config, Exporter, load_device
from svd2py.masters import MockMaster

DEMO_DEVICE = Path(__file__).with_name("demo_uart.yaml")


def main():
    print("=" * 70)
    print("svd2py Register Access Demonstration")
    print("=" * 70)
    print()

    with tempfile.TemporaryDirectory() as tmpdir:
        print("1. Loading the device description...")
        device = load_device(DEMO_DEVICE)
        print(f"   ✓ {device.name}: {len(device.peripherals)} peripherals")
        print()

        print("2. Exporting the Python package...")
        result = Exporter(Config(output_dir=Path(tmpdir))).export(device)
        for path in result.files:
            print(f"   - {path.name:40s} ({path.stat().st_size:6d} bytes)")
        print()

        sys.path.insert(0, tmpdir)
        soc = importlib.import_module(result.package.name)
        master = MockMaster()
        uart = soc.Peripherals(master).uart0

        print("3. Writing the control register:")
        uart.cr.write(lambda w: w.en().set_bit().parity().odd().bauddiv().bits(26))
        print(f"   CR = {master.memory[uart.cr.address]:#06x}")
        print()

        print("4. Read-modify-write:")
        uart.cr.modify(lambda r, w: w.parity().even())
        cr = uart.cr.read()
        print(f"   parity = {cr.parity().variant()!r}, bauddiv = {cr.bauddiv().bits()}")
        print()

        print("5. Status register baseline:")
        master.memory[uart.sr.address] = 0x3
        uart.sr.modify(lambda r, w: w)
        print(f"   SR after an empty modify = {master.memory[uart.sr.address]:#x} (OVR untouched)")
        uart.sr.write(lambda w: w.ovr().clear_bit_by_one())
        print(f"   SR after clearing OVR    = {master.memory[uart.sr.address]:#x}")
        print()

        print("6. Register arrays:")
        for n, fifo in enumerate(uart.fifo_iter()):
            print(f"   fifo({n}) @ {fifo.address:#010x}")
        print()

        print("7. Memory transactions:")
        for t in master.transactions:
            print(f"   {t.op:5s} {t.address:#010x} {t.value:#x}")
        print()

        print(f"   Interrupts: {[(i.name, int(i)) for i in soc.Interrupt]}")
        sys.path.remove(tmpdir)

    print("=" * 70)
    print("Demonstration complete!")
    print("=" * 70)


if __name__ == "__main__":
    main()
