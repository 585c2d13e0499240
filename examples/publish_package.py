#!/usr/bin/env python3
"""
Publish Package Example

This example demonstrates:
- Loading an identity from SUI_KIT_MNEMONICS or SUI_KIT_SECRET_KEY
- Topping up gas from the faucet when the balance is low
- Building and publishing a Move package
- Emitting the toolkit's structured logs as JSON lines

Usage: python examples/publish_package.py path/to/move/package
"""

import asyncio
import sys
from pathlib import Path

from sui_kit import SuiKit
from sui_kit.errors import BuildFailedError, SuiKitError
from sui_kit.logging_pipeline import configure_structured_logging, shutdown_listeners

MIN_BALANCE_MIST = 3_000_000_000


async def publish(package_path: Path) -> None:
    kit = SuiKit()
    print(f"Publishing from {kit.current_address()}")

    balance = await kit.get_balance()
    print(f"Balance: {balance.total_balance} MIST in {balance.coin_object_count} coins")
    if balance.total_balance <= MIN_BALANCE_MIST:
        print("Requesting gas from the faucet...")
        if not await kit.request_faucet():
            print("Faucet request failed; publishing may run out of gas.")
        # The faucet transfer lands asynchronously.
        await asyncio.sleep(3)

    result = await kit.publish_package(package_path)
    print(f"packageId: {result.package_id}")
    print(f"upgradeCap: {result.upgrade_cap_id}")
    print(f"digest: {result.digest}")


def main() -> int:
    if len(sys.argv) != 2:
        print(__doc__)
        return 2

    listener = configure_structured_logging()
    try:
        asyncio.run(publish(Path(sys.argv[1])))
    except BuildFailedError as exc:
        print(f"Build failed: {exc}")
        print(exc.diagnostics)
        return 1
    except SuiKitError as exc:
        print(f"Publish failed: {exc}")
        return 1
    finally:
        shutdown_listeners([listener])
    return 0


if __name__ == "__main__":
    sys.exit(main())
