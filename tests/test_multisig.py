"""Tests for weighted-threshold signature aggregation."""

from __future__ import annotations

import base64

import pytest

from sui_kit.account.keypair import Ed25519Keypair
from sui_kit.errors import ThresholdNotMetError, UnknownSignerError
from sui_kit.multisig import (
    MULTISIG_FLAG,
    MultiSigPolicy,
    SignaturePart,
    WeightedPublicKey,
    combine,
)

TX_BYTES = b"\x00" + bytes(range(40))


@pytest.fixture
def members() -> list[Ed25519Keypair]:
    return [Ed25519Keypair(bytes([seed]) * 32) for seed in (1, 2, 3)]


@pytest.fixture
def policy(members: list[Ed25519Keypair]) -> MultiSigPolicy:
    k1, k2, k3 = members
    return MultiSigPolicy.from_pairs(
        [(k1.public_key, 1), (k2.public_key, 1), (k3.public_key, 2)], threshold=2
    )


def _part(keypair: Ed25519Keypair, tx_bytes: bytes = TX_BYTES) -> SignaturePart:
    return SignaturePart.from_serialized(keypair.sign_transaction(tx_bytes))


def test_two_light_signers_meet_threshold(policy, members) -> None:
    k1, k2, _ = members
    auth = combine(policy, [_part(k1), _part(k2)])

    assert auth.weight == 2
    assert auth.bitmap == 0b011
    assert auth.signer_indices == [0, 1]
    assert auth.verify(TX_BYTES)


def test_heavy_signer_alone_meets_threshold(policy, members) -> None:
    auth = combine(policy, [_part(members[2])])
    assert auth.bitmap == 0b100
    assert auth.weight == 2


def test_single_light_signer_falls_short(policy, members) -> None:
    with pytest.raises(ThresholdNotMetError) as excinfo:
        combine(policy, [_part(members[0])])
    assert excinfo.value.weight == 1
    assert excinfo.value.threshold == 2


def test_duplicate_signer_counts_once(policy, members) -> None:
    k1 = members[0]
    with pytest.raises(ThresholdNotMetError):
        combine(policy, [_part(k1), _part(k1)])


def test_duplicate_keeps_first_signature(policy, members) -> None:
    k1, k2, _ = members
    first = _part(k1)
    second = SignaturePart(public_key=k1.public_key, signature=b"\x00" * 64)
    auth = combine(policy, [first, second, _part(k2)])
    assert auth.signatures[0] == first.signature


def test_signatures_emitted_in_policy_order(policy, members) -> None:
    k1, k2, k3 = members
    auth = combine(policy, [_part(k3), _part(k1)])

    assert auth.signer_indices == [0, 2]
    assert auth.signatures == (_part(k1).signature, _part(k3).signature)
    assert auth.verify(TX_BYTES)


def test_unknown_signer_rejected(policy) -> None:
    outsider = Ed25519Keypair(b"\x09" * 32)
    with pytest.raises(UnknownSignerError) as excinfo:
        combine(policy, [_part(outsider)])
    assert excinfo.value.public_key == outsider.public_key


def test_mismatched_weight_rejected(policy, members) -> None:
    k3 = members[2]
    part = SignaturePart(k3.public_key, _part(k3).signature, weight=1)
    with pytest.raises(ValueError):
        combine(policy, [part])


def test_verify_rejects_other_transaction(policy, members) -> None:
    auth = combine(policy, [_part(members[2])])
    assert not auth.verify(TX_BYTES + b"\x01")


def test_serialized_layout(policy, members) -> None:
    k1, k2, k3 = members
    auth = combine(policy, [_part(k1), _part(k2)])
    raw = base64.b64decode(auth.serialize())

    assert raw[0] == MULTISIG_FLAG
    assert raw[1] == 2  # two compressed signatures
    assert raw[2] == 0 and raw[3:67] == auth.signatures[0]
    assert raw[67] == 0 and raw[68:132] == auth.signatures[1]
    assert raw[132:134] == (0b011).to_bytes(2, "little")
    assert raw[134] == 3  # three weighted keys
    assert raw[135] == 0 and raw[136:168] == k1.public_key and raw[168] == 1
    assert raw.endswith(k3.public_key + b"\x02" + (2).to_bytes(2, "little"))
    assert auth.to_bytes() == raw


def test_address_depends_on_policy(policy, members) -> None:
    k1, k2, k3 = members
    assert policy.address.startswith("0x") and len(policy.address) == 66

    reordered = MultiSigPolicy.from_pairs(
        [(k2.public_key, 1), (k1.public_key, 1), (k3.public_key, 2)], threshold=2
    )
    stricter = MultiSigPolicy.from_pairs(
        [(k1.public_key, 1), (k2.public_key, 1), (k3.public_key, 2)], threshold=3
    )
    assert reordered.address != policy.address
    assert stricter.address != policy.address


@pytest.mark.parametrize(
    "weights, threshold",
    [
        ([1, 1], 3),
        ([1], 0),
        ([1], 70_000),
    ],
)
def test_policy_rejects_unreachable_or_invalid_threshold(weights, threshold) -> None:
    pairs = [(bytes([i + 1]) * 32, weight) for i, weight in enumerate(weights)]
    with pytest.raises(ValueError):
        MultiSigPolicy.from_pairs(pairs, threshold)


def test_policy_rejects_duplicate_keys_and_bad_members() -> None:
    key = b"\x01" * 32
    with pytest.raises(ValueError):
        MultiSigPolicy.from_pairs([(key, 1), (key, 1)], 1)
    with pytest.raises(ValueError):
        MultiSigPolicy((), 1)
    with pytest.raises(ValueError):
        WeightedPublicKey(b"\x01" * 31, 1)
    with pytest.raises(ValueError):
        WeightedPublicKey(key, 0)
    with pytest.raises(ValueError):
        MultiSigPolicy.from_pairs([(bytes([i]) * 32, 1) for i in range(11)], 1)
