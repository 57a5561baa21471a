"""Solidity compiler integration for contract source verification.

Runs the ``solc`` command-line compiler as an asyncio subprocess, feeding
the source on stdin and reading ``--combined-json`` output. Compiled units
are keyed ``<stdin>:<ContractName>``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import shutil
from typing import Any, Protocol

from explorer.core.types import CompilationUnit, SolcVersion

logger = logging.getLogger(__name__)

# Key prefix solc assigns to contracts compiled from stdin
STDIN_MARKER = "<stdin>"

COMBINED_JSON_OUTPUTS = "bin-runtime"

_SEMVER_RE = re.compile(r"([0-9]+)\.([0-9]+)\.([0-9]+)\+commit\.[^.]*")


class CompilerError(Exception):
    """The compiler could not be run or rejected the input."""


class CompilerTimeout(CompilerError):
    """The compiler did not finish within the allotted time."""


class SourceCompiler(Protocol):
    """Compiler capability consumed by the verifier."""

    async def compile(
        self, source: str, timeout: float | None = None
    ) -> dict[str, CompilationUnit]: ...

    async def version(self, timeout: float | None = None) -> SolcVersion: ...


def unit_key(contract_name: str) -> str:
    """Compilation unit key for ``contract_name`` compiled from stdin."""
    return f"{STDIN_MARKER}:{contract_name}"


def parse_semantic_version(full_version: str) -> str | None:
    """Extract ``MAJOR.MINOR.PATCH+commit.<hash>`` from a version banner."""
    match = _SEMVER_RE.search(full_version or "")
    if match is None:
        return None
    return match.group(0)


def resolve_solc_binary(binary: str = "solc", version: str = "") -> str:
    """Resolve the solc executable path.

    With an explicit ``version`` the binary is managed by py-solc-x and
    installed on first use; otherwise ``binary`` is looked up on PATH.
    """
    if version:
        import solcx
        from solcx.exceptions import SolcNotInstalled

        try:
            return str(solcx.get_executable(version))
        except SolcNotInstalled:
            logger.info("Installing solc %s", version)
            solcx.install_solc(version)
            return str(solcx.get_executable(version))

    return shutil.which(binary) or binary


class SolcCompiler:
    """Compile Solidity source code with the solc CLI."""

    def __init__(
        self,
        binary: str = "solc",
        version: str = "",
        optimize: bool = True,
        timeout: float | None = 60.0,
    ) -> None:
        self.binary = binary
        self.solc_version = version
        self.optimize = optimize
        self.timeout = timeout
        self._executable: str | None = None

    @classmethod
    def from_settings(cls) -> "SolcCompiler":
        from explorer.core.config import get_settings

        settings = get_settings()
        return cls(
            binary=settings.solc_binary,
            version=settings.solc_version,
            optimize=settings.solc_optimize,
            timeout=settings.compile_timeout_seconds,
        )

    # ── Public API ───────────────────────────────────────────────────

    async def compile(
        self, source: str, timeout: float | None = None
    ) -> dict[str, CompilationUnit]:
        """Compile ``source`` and return its compilation units by key.

        Raises:
            CompilerError: solc is missing, exited non-zero or produced
                output that is not valid combined JSON.
            CompilerTimeout: solc exceeded the timeout.
        """
        args = ["--combined-json", COMBINED_JSON_OUTPUTS]
        if self.optimize:
            args.append("--optimize")
        args.append("-")

        stdout = await self._run(args, stdin=source.encode("utf-8"), timeout=timeout)
        try:
            output = json.loads(stdout.decode("utf-8", errors="replace"))
            return self._parse_combined_json(output, source)
        except (json.JSONDecodeError, AttributeError) as exc:
            raise CompilerError(f"Unparsable solc output: {exc}") from exc

    async def version(self, timeout: float | None = None) -> SolcVersion:
        """Return the full version banner printed by ``solc --version``."""
        stdout = await self._run(["--version"], timeout=timeout)
        return SolcVersion(full_version=stdout.decode("utf-8", errors="replace").strip())

    async def executable(self) -> str:
        if self._executable is None:
            self._executable = await asyncio.to_thread(
                resolve_solc_binary, self.binary, self.solc_version
            )
        return self._executable

    # ── Private ──────────────────────────────────────────────────────

    async def _run(
        self,
        args: list[str],
        stdin: bytes | None = None,
        timeout: float | None = None,
    ) -> bytes:
        timeout = self.timeout if timeout is None else timeout
        try:
            executable = await self.executable()
            process = await asyncio.create_subprocess_exec(
                executable,
                *args,
                stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except Exception as exc:
            raise CompilerError(f"Cannot run solc ({self.binary}): {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(stdin), timeout=timeout
            )
        except asyncio.TimeoutError:
            self._kill(process)
            await process.wait()
            raise CompilerTimeout(f"solc timed out after {timeout}s")
        except asyncio.CancelledError:
            self._kill(process)
            raise

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise CompilerError(message or f"solc exited with status {process.returncode}")

        return stdout

    @staticmethod
    def _kill(process: asyncio.subprocess.Process) -> None:
        try:
            process.kill()
        except ProcessLookupError:
            pass

    @staticmethod
    def _parse_combined_json(
        output: dict[str, Any], source: str
    ) -> dict[str, CompilationUnit]:
        compiler_version = output.get("version", "")
        units: dict[str, CompilationUnit] = {}

        for key, data in output.get("contracts", {}).items():
            runtime = data.get("bin-runtime", "")
            units[key] = CompilationUnit(
                name=key.rsplit(":", 1)[-1],
                runtime_code=f"0x{runtime}" if runtime else "",
                source=source,
                compiler_version=compiler_version,
            )

        return units
