"""Explorer CLI: contract verification and maintenance commands.

Usage:
    explorer verify --address <addr> --name <Contract> <source.sol>
    explorer compiler-version
    explorer import-contract --address <addr>
    explorer config

Examples:
    explorer verify -a 0x1234...abcd -n Token ./contracts/Token.sol
    explorer import-contract -a 0x1234...abcd --rpc-url http://localhost:8545
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from explorer.verifier.errors import ContractVerificationError

# ── Coloured output helpers ──────────────────────────────────────────────────

_RESET = "\033[0m"
_BOLD = "\033[1m"
_RED = "\033[91m"
_GREEN = "\033[92m"
_DIM = "\033[2m"


def _c(text: str, code: str) -> str:
    return f"{code}{text}{_RESET}"


def _fail(message: str) -> int:
    print(_c(f"error: {message}", _RED), file=sys.stderr)
    return 1


# ── CLI argument parser ─────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="explorer",
        description="Chain explorer backend tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")

    sub = parser.add_subparsers(dest="command")

    # ── verify ───────────────────────────────────────────────────────────────
    verify_p = sub.add_parser("verify", help="Verify contract source against deployed bytecode")
    verify_p.add_argument("source", help="Path to the Solidity source file")
    verify_p.add_argument("--address", "-a", required=True, help="Contract address")
    verify_p.add_argument("--name", "-n", required=True, help="Contract name within the source")
    verify_p.add_argument("--timeout", type=float, default=None, help="Compile timeout in seconds")

    # ── compiler-version ─────────────────────────────────────────────────────
    sub.add_parser("compiler-version", help="Print the configured solc version")

    # ── import-contract ──────────────────────────────────────────────────────
    import_p = sub.add_parser("import-contract", help="Fetch contract code from the node and store it")
    import_p.add_argument("--address", "-a", required=True, help="Contract address")
    import_p.add_argument("--rpc-url", help="Node RPC URL (default: EXPLORER_RPC_URL)")

    # ── config ───────────────────────────────────────────────────────────────
    sub.add_parser("config", help="Show current configuration")

    return parser


# ── Commands ─────────────────────────────────────────────────────────────────


async def _store():
    from explorer.core.config import get_settings
    from explorer.core.database import create_tables, get_session_factory
    from explorer.store.contracts import SqlContractStore

    if get_settings().database_auto_create:
        await create_tables()
    return SqlContractStore(get_session_factory())


def _verifier(store):
    from explorer.compiler.solc import SolcCompiler
    from explorer.core.config import get_settings
    from explorer.verifier.service import ContractVerifier

    return ContractVerifier(
        store=store,
        compiler=SolcCompiler.from_settings(),
        timeout=get_settings().compile_timeout_seconds,
    )


async def _run_verify(args: argparse.Namespace) -> int:
    from explorer.core.database import dispose_engine

    path = Path(args.source)
    if not path.is_file():
        return _fail(f"source file not found: {path}")

    source = path.read_text(encoding="utf-8")
    try:
        verifier = _verifier(await _store())
        record = await verifier.verify_contract(
            args.address, args.name, source, timeout=args.timeout
        )
    except ContractVerificationError as exc:
        return _fail(f"[{exc.code}] {exc.message}")
    except SQLAlchemyError as exc:
        return _fail(f"database error: {exc}")
    except ValueError as exc:
        return _fail(str(exc))
    finally:
        await dispose_engine()

    if args.json:
        print(json.dumps(record.to_dict(), default=str, indent=2))
    else:
        print(_c(f"✓ {record.contract_name} verified at {record.address}", _GREEN))
        print(f"  {_DIM}compiler:{_RESET} {record.compiler_version}")
    return 0


async def _run_compiler_version(args: argparse.Namespace) -> int:
    try:
        version = await _verifier(None).get_compiler_version()
    except ContractVerificationError as exc:
        return _fail(f"[{exc.code}] {exc.message}")

    print(json.dumps({"version": version}) if args.json else version)
    return 0


async def _run_import(args: argparse.Namespace) -> int:
    from explorer.core.config import get_settings
    from explorer.core.database import dispose_engine
    from explorer.ingestion.rpc import ChainClient, ChainClientError

    client = ChainClient(args.rpc_url or get_settings().rpc_url)
    try:
        code = await client.get_code(args.address)
        record = await (await _store()).import_contract(args.address, code)
    except ChainClientError as exc:
        return _fail(str(exc))
    except SQLAlchemyError as exc:
        return _fail(f"database error: {exc}")
    except ValueError as exc:
        return _fail(str(exc))
    finally:
        await dispose_engine()

    if not record.bytecode:
        print(_c(f"warning: no code deployed at {record.address}", _DIM), file=sys.stderr)
    if args.json:
        print(json.dumps(record.to_dict(), default=str, indent=2))
    else:
        print(f"Imported {record.address} ({len(record.bytecode) // 2} bytes)")
    return 0


def _run_config() -> int:
    """Print current settings (redacted)."""
    from explorer.core.config import get_settings

    s = get_settings()
    print(f"\n{_BOLD}Explorer Configuration{_RESET}\n")
    for field_name in sorted(type(s).model_fields.keys()):
        val = getattr(s, field_name, "")
        if any(kw in field_name for kw in ("password", "secret", "key", "token")):
            val = "****" if val else "(not set)"
        print(f"  {_DIM}{field_name}:{_RESET}  {val}")
    print()
    return 0


# ── Entrypoint ───────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print("explorer 1.0.0")
        return 0

    if args.command == "config":
        return _run_config()

    if args.command == "verify":
        return asyncio.run(_run_verify(args))

    if args.command == "compiler-version":
        return asyncio.run(_run_compiler_version(args))

    if args.command == "import-contract":
        return asyncio.run(_run_import(args))

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
