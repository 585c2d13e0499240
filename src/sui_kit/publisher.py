"""
Build a Move package with the Sui CLI and publish it.

The build runs ``sui move build --dump-bytecode-as-base64`` as a child
process. Build output goes to a fresh temporary directory owned by a single
publish call; the directory is removed on every exit path, including build
and submission failures. A failed build aborts before any network call.

Each call walks ``IDLE -> VALIDATING -> BUILDING -> SUBMITTING -> DONE``, with
``FAILED`` reachable from any non-terminal state.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
import shlex
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, Protocol

from sui_kit.errors import (
    BuildFailedError,
    PackageNotFoundError,
    PublishResultMalformedError,
)
from sui_kit.rpc.base import ChainClient
from sui_kit.schemas import ObjectChange, TransactionResponse
from sui_kit.settings import DEFAULT_GAS_BUDGET
from sui_kit.tx.builder import TransactionBuilder

__all__ = [
    "PackagePublisher",
    "PublishArtifact",
    "PublishOptions",
    "PublishResult",
    "PublishState",
    "TransactionSigner",
]

LOGGER = logging.getLogger(__name__)

_WORKDIR_PREFIX = "sui-kit-build-"
_UPGRADE_CAP_SUFFIX = "::package::UpgradeCap"


class TransactionSigner(Protocol):
    address: str

    def sign_transaction(self, tx_bytes: bytes) -> str: ...


class PublishState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    BUILDING = "building"
    SUBMITTING = "submitting"
    DONE = "done"
    FAILED = "failed"


_TERMINAL = frozenset({PublishState.DONE, PublishState.FAILED})


@dataclass(frozen=True, slots=True)
class PublishOptions:
    """Per-call knobs for :meth:`PackagePublisher.publish`.

    Attributes:
        gas_budget: Budget for the publish transaction; the publisher default
            applies when ``None``.
        skip_fetch_latest_git_deps: Pass ``--skip-fetch-latest-git-deps``.
        with_unpublished_dependencies: Pass ``--with-unpublished-dependencies``.
    """

    gas_budget: int | None = None
    skip_fetch_latest_git_deps: bool = False
    with_unpublished_dependencies: bool = False


@dataclass(frozen=True, slots=True)
class PublishArtifact:
    """Compiled bytecode and dependency ids produced by one build."""

    modules: tuple[bytes, ...]
    dependencies: tuple[str, ...]
    digest: bytes | None = None


@dataclass(frozen=True, slots=True)
class PublishResult:
    package_id: str
    upgrade_cap_id: str | None
    created_objects: tuple[ObjectChange, ...]
    digest: str
    response: TransactionResponse


@dataclass(slots=True)
class _PublishRun:
    """State of a single publish invocation."""

    package_path: str
    state: PublishState = PublishState.IDLE
    history: list[PublishState] = field(default_factory=lambda: [PublishState.IDLE])

    def advance(self, state: PublishState) -> None:
        if self.state in _TERMINAL:
            raise RuntimeError(f"publish already finished in state {self.state.value}")
        self.state = state
        self.history.append(state)
        LOGGER.debug(
            "Publish state changed",
            extra={"package_path": self.package_path, "state": state.value},
        )


@contextmanager
def _build_workspace() -> Iterator[Path]:
    """Create a uniquely named working directory and always remove it."""

    workdir = Path(tempfile.mkdtemp(prefix=_WORKDIR_PREFIX))
    try:
        yield workdir
    finally:
        shutil.rmtree(workdir, ignore_errors=True)
        if workdir.exists():
            LOGGER.warning("Failed to remove build directory", extra={"workdir": str(workdir)})


def parse_build_output(stdout: str) -> PublishArtifact:
    """Parse the JSON printed by ``sui move build --dump-bytecode-as-base64``.

    Raises:
        BuildFailedError: If the output is not the expected JSON document.
    """

    text = stdout.strip()
    start = text.find("{")
    if start < 0:
        raise BuildFailedError("build produced no bytecode output", diagnostics=text[-2000:])
    try:
        payload = json.loads(text[start:])
    except json.JSONDecodeError as exc:
        raise BuildFailedError("build output is not valid JSON", diagnostics=str(exc)) from exc

    modules = payload.get("modules") if isinstance(payload, dict) else None
    dependencies = payload.get("dependencies") if isinstance(payload, dict) else None
    if not isinstance(modules, list) or not modules or not isinstance(dependencies, list):
        raise BuildFailedError("build output lacks 'modules' or 'dependencies'")
    try:
        decoded = tuple(base64.b64decode(module, validate=True) for module in modules)
    except (binascii.Error, TypeError) as exc:
        raise BuildFailedError("build output contains non-base64 module bytecode") from exc
    if not all(isinstance(dep, str) for dep in dependencies):
        raise BuildFailedError("build output contains a non-string dependency id")

    digest = payload.get("digest")
    return PublishArtifact(
        modules=decoded,
        dependencies=tuple(dependencies),
        digest=bytes(digest) if isinstance(digest, list) else None,
    )


def _extract_result(response: TransactionResponse) -> PublishResult:
    published = next(
        (change for change in response.object_changes if change.type == "published"),
        None,
    )
    if published is None or not published.package_id:
        raise PublishResultMalformedError(
            f"transaction {response.digest} has no 'published' object change"
        )
    created = tuple(response.created_objects())
    upgrade_cap = next(
        (
            change.object_id
            for change in created
            if change.object_type and change.object_type.endswith(_UPGRADE_CAP_SUFFIX)
        ),
        None,
    )
    return PublishResult(
        package_id=published.package_id,
        upgrade_cap_id=upgrade_cap,
        created_objects=created,
        digest=response.digest,
        response=response,
    )


class PackagePublisher:
    """Drive ``sui move build`` and submit the resulting publish transaction."""

    def __init__(
        self,
        client: ChainClient,
        sui_bin: str = "sui",
        *,
        default_gas_budget: int = DEFAULT_GAS_BUDGET,
    ) -> None:
        self._client = client
        self._command = shlex.split(sui_bin)
        if not self._command:
            raise ValueError("sui_bin must name an executable")
        self._default_gas_budget = default_gas_budget

    def build_command(self, package_path: Path, workdir: Path, options: PublishOptions) -> list[str]:
        command = [
            *self._command,
            "move",
            "build",
            "--dump-bytecode-as-base64",
            "--path",
            str(package_path),
            "--install-dir",
            str(workdir),
        ]
        if options.skip_fetch_latest_git_deps:
            command.append("--skip-fetch-latest-git-deps")
        if options.with_unpublished_dependencies:
            command.append("--with-unpublished-dependencies")
        return command

    async def build_package(
        self, package_path: Path, workdir: Path, options: PublishOptions | None = None
    ) -> PublishArtifact:
        """Run the build tool and parse its output.

        Raises:
            BuildFailedError: On a missing executable, non-zero exit or bad output.
        """

        command = self.build_command(package_path, workdir, options or PublishOptions())
        LOGGER.info(
            "Building Move package",
            extra={"package_path": str(package_path), "workdir": str(workdir)},
        )
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise BuildFailedError(f"could not start {command[0]!r}", diagnostics=str(exc)) from exc

        stdout, stderr = await process.communicate()
        diagnostics = stderr.decode("utf-8", errors="replace")
        if process.returncode != 0:
            raise BuildFailedError(
                "sui move build failed",
                returncode=process.returncode,
                diagnostics=diagnostics or stdout.decode("utf-8", errors="replace"),
            )
        return parse_build_output(stdout.decode("utf-8", errors="replace"))

    async def _submit(
        self, artifact: PublishArtifact, signer: TransactionSigner, options: PublishOptions
    ) -> PublishResult:
        tx = TransactionBuilder()
        upgrade_cap = tx.publish(artifact.modules, artifact.dependencies)
        tx.transfer_objects([upgrade_cap], signer.address)
        if options.gas_budget is not None:
            tx.set_gas_budget(options.gas_budget)
        tx_bytes = await tx.build(
            self._client, signer.address, default_gas_budget=self._default_gas_budget
        )
        response = await self._client.execute_transaction(tx_bytes, [signer.sign_transaction(tx_bytes)])
        return _extract_result(response)

    async def publish(
        self,
        package_path: str | Path,
        signer: TransactionSigner,
        options: PublishOptions | None = None,
    ) -> PublishResult:
        """Build the package at ``package_path`` and publish it as ``signer``.

        Raises:
            PackageNotFoundError: If the path is not an existing directory.
            BuildFailedError: If the build fails; nothing is submitted.
            SubmissionRejectedError: If the ledger refuses the transaction.
            PublishResultMalformedError: If the effects name no new package.
        """

        opts = options or PublishOptions()
        run = _PublishRun(str(package_path))
        try:
            run.advance(PublishState.VALIDATING)
            path = Path(package_path)
            if not path.is_dir():
                raise PackageNotFoundError(f"Move package directory not found: {package_path}")

            with _build_workspace() as workdir:
                run.advance(PublishState.BUILDING)
                artifact = await self.build_package(path.resolve(), workdir, opts)
                run.advance(PublishState.SUBMITTING)
                result = await self._submit(artifact, signer, opts)
        except BaseException as exc:
            run.advance(PublishState.FAILED)
            LOGGER.warning(
                "Package publish failed",
                extra={
                    "package_path": str(package_path),
                    "failed_after": run.history[-2].value,
                    "error": str(exc),
                },
            )
            raise

        run.advance(PublishState.DONE)
        LOGGER.info(
            "Package published",
            extra={"package_id": result.package_id, "digest": result.digest},
        )
        return result
