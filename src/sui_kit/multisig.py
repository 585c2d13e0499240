"""
Weighted-threshold multi-signature aggregation.

A :class:`MultiSigPolicy` lists public keys with weights and a threshold.
Individually produced signatures over the same transaction bytes are
combined into one authorization whose bitmap marks which policy keys signed.
Verifiers rebuild the bitmap positionally, so signatures are always emitted
in the policy's key order, never in the order they were collected.

Serialized form (flag ``0x03``)::

    0x03 || bcs(MultiSig { sigs, bitmap: u16, multisig_pk: { pk_map, threshold: u16 } })
"""

from __future__ import annotations

import base64
import hashlib
import logging
from dataclasses import dataclass
from typing import Final, Iterable, Sequence

from sui_kit.account.keypair import (
    ED25519_FLAG,
    parse_serialized_signature,
    verify_transaction_signature,
)
from sui_kit.bcs import Serializer
from sui_kit.errors import ThresholdNotMetError, UnknownSignerError

__all__ = [
    "CombinedAuthorization",
    "MULTISIG_FLAG",
    "MultiSigPolicy",
    "SignaturePart",
    "WeightedPublicKey",
    "combine",
]

LOGGER = logging.getLogger(__name__)

MULTISIG_FLAG: Final[int] = 0x03
MAX_SIGNERS: Final[int] = 10
_MAX_WEIGHT: Final[int] = 255
_MAX_THRESHOLD: Final[int] = 2**16 - 1
_ED25519_PUBLIC_KEY_LENGTH: Final[int] = 32


@dataclass(frozen=True, slots=True)
class WeightedPublicKey:
    public_key: bytes
    weight: int

    def __post_init__(self) -> None:
        if len(self.public_key) != _ED25519_PUBLIC_KEY_LENGTH:
            raise ValueError("multisig members must be 32-byte Ed25519 public keys")
        if isinstance(self.weight, bool) or not 1 <= self.weight <= _MAX_WEIGHT:
            raise ValueError(f"weight must be between 1 and {_MAX_WEIGHT}, got {self.weight!r}")


@dataclass(frozen=True, slots=True)
class SignaturePart:
    """One member's Ed25519 signature over the transaction bytes.

    ``weight`` is optional; when given it must agree with the policy.
    """

    public_key: bytes
    signature: bytes
    weight: int | None = None

    @classmethod
    def from_serialized(cls, serialized: str) -> "SignaturePart":
        """Build from a base64 ``flag || sig || pk`` signature as produced by a keypair."""

        parsed = parse_serialized_signature(serialized)
        return cls(public_key=parsed.public_key, signature=parsed.signature)


@dataclass(frozen=True, slots=True)
class MultiSigPolicy:
    """Ordered weighted keys plus the weight needed to authorize.

    Raises:
        ValueError: When the threshold is not positive, the weights can never
            reach it, a key repeats, or there are more than ten members.
    """

    members: tuple[WeightedPublicKey, ...]
    threshold: int

    def __post_init__(self) -> None:
        if not self.members:
            raise ValueError("multisig policy needs at least one member")
        if len(self.members) > MAX_SIGNERS:
            raise ValueError(f"multisig policy supports at most {MAX_SIGNERS} members")
        if isinstance(self.threshold, bool) or not 0 < self.threshold <= _MAX_THRESHOLD:
            raise ValueError(f"threshold must be between 1 and {_MAX_THRESHOLD}")
        keys = [member.public_key for member in self.members]
        if len(set(keys)) != len(keys):
            raise ValueError("multisig policy contains a duplicate public key")
        total = sum(member.weight for member in self.members)
        if total < self.threshold:
            raise ValueError(
                f"total weight {total} can never reach threshold {self.threshold}"
            )

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[bytes, int]], threshold: int) -> "MultiSigPolicy":
        return cls(tuple(WeightedPublicKey(pk, weight) for pk, weight in pairs), threshold)

    def index_of(self, public_key: bytes) -> int:
        for index, member in enumerate(self.members):
            if member.public_key == public_key:
                return index
        raise UnknownSignerError(public_key)

    @property
    def address(self) -> str:
        """Return the multisig account address controlled by this policy."""

        digest = hashlib.blake2b(digest_size=32)
        digest.update(bytes([MULTISIG_FLAG]))
        digest.update(self.threshold.to_bytes(2, "little"))
        for member in self.members:
            digest.update(bytes([ED25519_FLAG]))
            digest.update(member.public_key)
            digest.update(bytes([member.weight]))
        return "0x" + digest.hexdigest()

    def encode(self, ser: Serializer) -> Serializer:
        def _member(s: Serializer, member: WeightedPublicKey) -> None:
            s.uleb128(0)  # PublicKey::Ed25519
            s.fixed_bytes(member.public_key)
            s.u8(member.weight)

        ser.sequence(self.members, _member)
        return ser.u16(self.threshold)


@dataclass(frozen=True, slots=True)
class CombinedAuthorization:
    """Policy plus the signatures meeting its threshold, in policy order."""

    policy: MultiSigPolicy
    signatures: tuple[bytes, ...]
    bitmap: int
    weight: int

    @property
    def signer_indices(self) -> list[int]:
        return [i for i in range(len(self.policy.members)) if self.bitmap & (1 << i)]

    def to_bytes(self) -> bytes:
        ser = Serializer()
        ser.u8(MULTISIG_FLAG)

        def _signature(s: Serializer, signature: bytes) -> None:
            s.uleb128(0)  # CompressedSignature::Ed25519
            s.fixed_bytes(signature)

        ser.sequence(self.signatures, _signature)
        ser.u16(self.bitmap)
        self.policy.encode(ser)
        return ser.output()

    def serialize(self) -> str:
        """Return the base64 form submitted alongside the transaction."""

        return base64.b64encode(self.to_bytes()).decode("ascii")

    def verify(self, tx_bytes: bytes) -> bool:
        """Check every included signature against ``tx_bytes`` and the threshold."""

        weight = 0
        for index, signature in zip(self.signer_indices, self.signatures):
            member = self.policy.members[index]
            if not verify_transaction_signature(tx_bytes, signature, member.public_key):
                return False
            weight += member.weight
        return weight >= self.policy.threshold


def combine(policy: MultiSigPolicy, signatures: Sequence[SignaturePart]) -> CombinedAuthorization:
    """Aggregate member signatures into one authorization.

    A repeated public key counts once; its first signature is kept.

    Raises:
        UnknownSignerError: If a signature's key is not in ``policy``.
        ThresholdNotMetError: If the distinct signers' weight is below the threshold.
    """

    by_index: dict[int, bytes] = {}
    for part in signatures:
        index = policy.index_of(part.public_key)
        member = policy.members[index]
        if part.weight is not None and part.weight != member.weight:
            raise ValueError(
                f"signature weight {part.weight} disagrees with policy weight "
                f"{member.weight} for key {part.public_key.hex()}"
            )
        if index in by_index:
            LOGGER.debug(
                "Ignoring duplicate multisig signature",
                extra={"public_key": part.public_key.hex()},
            )
            continue
        by_index[index] = part.signature

    weight = sum(policy.members[index].weight for index in by_index)
    if weight < policy.threshold:
        raise ThresholdNotMetError(weight, policy.threshold)

    ordered = sorted(by_index)
    bitmap = 0
    for index in ordered:
        bitmap |= 1 << index
    return CombinedAuthorization(
        policy=policy,
        signatures=tuple(by_index[index] for index in ordered),
        bitmap=bitmap,
        weight=weight,
    )
