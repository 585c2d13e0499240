#!/usr/bin/env python3
"""
Multisig Transfer Example

This example demonstrates:
- Defining a weighted 2-of-3 multisig policy
- Building a transfer with the multisig address as sender
- Collecting member signatures in any order
- Combining and submitting them as one authorization

The multisig address must hold SUI before the transfer can pay for gas.
"""

import asyncio

from sui_kit import Ed25519Keypair, MultiSigPolicy, SuiKit, TransactionBuilder
from sui_kit.errors import ThresholdNotMetError

RECIPIENT = "0x" + "cd" * 32


async def main() -> None:
    # Fixed demo keys; never use these for real funds.
    alice, bob, carol = (Ed25519Keypair(bytes([seed]) * 32) for seed in (1, 2, 3))
    policy = MultiSigPolicy.from_pairs(
        [(alice.public_key, 1), (bob.public_key, 1), (carol.public_key, 2)],
        threshold=2,
    )
    print(f"Multisig address: {policy.address}")

    kit = SuiKit(secret_key=alice.export_secret_key())
    if not await kit.rpc_provider.request_faucet(policy.address):
        print("Faucet unavailable; fund the multisig address manually.")
        return
    await asyncio.sleep(3)

    tx = TransactionBuilder()
    tx.transfer_sui(RECIPIENT, 1_000)
    tx_bytes = await kit.build_multisig_txn(tx, policy)

    # Alice alone carries weight 1 of the 2 required.
    try:
        await kit.send_multisig_txn(tx_bytes, policy, [alice.sign_transaction(tx_bytes)])
    except ThresholdNotMetError as exc:
        print(f"Rejected locally: {exc}")

    signatures = [bob.sign_transaction(tx_bytes), alice.sign_transaction(tx_bytes)]
    response = await kit.send_multisig_txn(tx_bytes, policy, signatures)
    print(f"Executed {response.digest}")


if __name__ == "__main__":
    asyncio.run(main())
