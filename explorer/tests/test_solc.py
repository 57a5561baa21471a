"""Tests for the solc CLI wrapper (explorer/compiler/solc.py).

The solc binary is never executed: subprocess creation is patched.
"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from explorer.compiler.solc import (
    CompilerError,
    CompilerTimeout,
    SolcCompiler,
    parse_semantic_version,
    resolve_solc_binary,
    unit_key,
)
from explorer.tests.conftest import FOO_SOURCE, SOLC_VERSION_BANNER

COMBINED_JSON = {
    "contracts": {
        "<stdin>:Foo": {"bin-runtime": "6080604052600436106049576000357c01"},
        "<stdin>:IFoo": {"bin-runtime": ""},
    },
    "version": "0.4.24+commit.e67f0147.Linux.g++",
}


def _process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> MagicMock:
    process = MagicMock()
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.wait = AsyncMock(return_value=returncode)
    process.returncode = returncode
    return process


@pytest.fixture
def solc() -> SolcCompiler:
    compiler = SolcCompiler(binary="solc", optimize=True, timeout=5.0)
    compiler._executable = "/usr/bin/solc"
    return compiler


class TestParseSemanticVersion:
    def test_from_banner(self):
        assert parse_semantic_version(SOLC_VERSION_BANNER) == "0.4.24+commit.e67f0147"

    def test_modern_banner(self):
        banner = "Version: 0.8.28+commit.7893614a.Linux.g++"
        assert parse_semantic_version(banner) == "0.8.28+commit.7893614a"

    def test_no_commit_hash(self):
        assert parse_semantic_version("Version: 0.8.28") is None

    def test_empty(self):
        assert parse_semantic_version("") is None


class TestUnitKey:
    def test_stdin_prefix(self):
        assert unit_key("Foo") == "<stdin>:Foo"


class TestCompile:
    @pytest.mark.asyncio
    async def test_parses_units(self, solc):
        process = _process(stdout=json.dumps(COMBINED_JSON).encode())
        with patch(
            "explorer.compiler.solc.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ) as spawn:
            units = await solc.compile(FOO_SOURCE)

        args = spawn.call_args.args
        assert args[0] == "/usr/bin/solc"
        assert "--combined-json" in args
        assert "--optimize" in args
        assert args[-1] == "-"
        process.communicate.assert_awaited_once_with(FOO_SOURCE.encode())

        foo = units["<stdin>:Foo"]
        assert foo.name == "Foo"
        assert foo.runtime_code == "0x6080604052600436106049576000357c01"
        assert foo.source == FOO_SOURCE
        assert foo.compiler_version == "0.4.24+commit.e67f0147.Linux.g++"
        assert args[args.index("--combined-json") + 1] == "bin-runtime"

    @pytest.mark.asyncio
    async def test_interface_has_empty_runtime(self, solc):
        process = _process(stdout=json.dumps(COMBINED_JSON).encode())
        with patch(
            "explorer.compiler.solc.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            units = await solc.compile(FOO_SOURCE)
        assert units["<stdin>:IFoo"].runtime_code == ""

    @pytest.mark.asyncio
    async def test_without_optimizer(self, solc):
        solc.optimize = False
        process = _process(stdout=json.dumps(COMBINED_JSON).encode())
        with patch(
            "explorer.compiler.solc.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ) as spawn:
            await solc.compile(FOO_SOURCE)
        assert "--optimize" not in spawn.call_args.args

    @pytest.mark.asyncio
    async def test_nonzero_exit(self, solc):
        process = _process(stderr=b"<stdin>:3:1: Error: Expected pragma", returncode=1)
        with patch(
            "explorer.compiler.solc.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            with pytest.raises(CompilerError, match="Expected pragma"):
                await solc.compile("contract {")

    @pytest.mark.asyncio
    async def test_invalid_json(self, solc):
        process = _process(stdout=b"not json")
        with patch(
            "explorer.compiler.solc.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            with pytest.raises(CompilerError, match="Unparsable"):
                await solc.compile(FOO_SOURCE)

    @pytest.mark.asyncio
    async def test_missing_binary(self, solc):
        with patch(
            "explorer.compiler.solc.asyncio.create_subprocess_exec",
            AsyncMock(side_effect=FileNotFoundError("solc")),
        ):
            with pytest.raises(CompilerError, match="Cannot run solc"):
                await solc.compile(FOO_SOURCE)

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, solc):
        async def _hang(*args):
            await asyncio.sleep(10)

        process = _process()
        process.communicate = _hang
        with patch(
            "explorer.compiler.solc.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ):
            with pytest.raises(CompilerTimeout):
                await solc.compile(FOO_SOURCE, timeout=0.01)

        process.kill.assert_called_once()
        process.wait.assert_awaited()


class TestVersion:
    @pytest.mark.asyncio
    async def test_returns_full_banner(self, solc):
        process = _process(stdout=(SOLC_VERSION_BANNER + "\n").encode())
        with patch(
            "explorer.compiler.solc.asyncio.create_subprocess_exec",
            AsyncMock(return_value=process),
        ) as spawn:
            result = await solc.version()
        assert spawn.call_args.args[1:] == ("--version",)
        assert result.full_version == SOLC_VERSION_BANNER


class TestResolveBinary:
    def test_path_lookup(self):
        with patch("explorer.compiler.solc.shutil.which", return_value="/opt/bin/solc"):
            assert resolve_solc_binary("solc") == "/opt/bin/solc"

    def test_falls_back_to_name(self):
        with patch("explorer.compiler.solc.shutil.which", return_value=None):
            assert resolve_solc_binary("solc") == "solc"

    def test_pinned_version_uses_solcx(self):
        with patch("solcx.get_executable", return_value="/root/.solcx/solc-v0.4.24") as get_exe:
            assert resolve_solc_binary("solc", "0.4.24") == "/root/.solcx/solc-v0.4.24"
        get_exe.assert_called_once_with("0.4.24")

    def test_pinned_version_installed_on_demand(self):
        from solcx.exceptions import SolcNotInstalled

        with patch(
            "solcx.get_executable",
            side_effect=[SolcNotInstalled("missing"), "/root/.solcx/solc-v0.4.24"],
        ), patch("solcx.install_solc") as install:
            assert resolve_solc_binary("solc", "0.4.24") == "/root/.solcx/solc-v0.4.24"
        install.assert_called_once_with("0.4.24")
