# solc wrapper: gather sources, run `solc --standard-json`, and pick the contract to analyze.

from __future__ import annotations

import json
import logging
import posixpath
import re
import subprocess
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from sabre.errors import CompilationError, CompilerNotFound
from sabre.request import replace_linked_libs

logger = logging.getLogger(__name__)

DEFAULT_SOLC = "solc"

IMPORT_PATTERN = re.compile(r"""^\s*import\b[^;'"]*['"]([^'"]+)['"][^;]*;""", re.MULTILINE)
BYTECODE_PATTERN = re.compile(r"^(0x)?([0-9a-fA-F]{2})+$")

NO_BYTECODE_MESSAGE = (
    "Compiling the Solidity code did not return any bytecode. "
    "Note that abstract contracts cannot be analyzed."
)


class CompiledContract(BaseModel):
    """The parts of one compiled contract the analysis request needs."""

    name: str
    source_path: str
    bytecode: str
    deployed_bytecode: str = ""
    source_map: str = ""
    deployed_source_map: str = ""
    method_identifiers: dict[str, str] = Field(default_factory=dict)


def get_solc_input(sources: Mapping[str, Any]) -> dict[str, Any]:
    """Standard-JSON compiler input for the given sources (path -> text or {"content": text})."""
    solc_sources = {
        path: value if isinstance(value, Mapping) else {"content": value}
        for path, value in sources.items()
    }
    return {
        "language": "Solidity",
        "sources": solc_sources,
        "settings": {
            "outputSelection": {"*": {"*": ["*"], "": ["ast"]}},
            "optimizer": {"enabled": True, "runs": 200},
        },
    }


def get_import_paths(source: str) -> list[str]:
    """Paths named by import directives, in order of appearance."""
    return IMPORT_PATTERN.findall(source)


def _locate_import(
    importing: str, importing_file: Path, imported: str, base_dir: Path
) -> tuple[str, Path]:
    """Return (source unit name, file on disk) for an import directive."""
    if imported.startswith("."):
        unit = posixpath.normpath(posixpath.join(posixpath.dirname(importing), imported))
        return unit, importing_file.parent / imported
    for candidate in (base_dir / imported, base_dir / "node_modules" / imported):
        if candidate.is_file():
            return imported, candidate
    return imported, base_dir / imported


def resolve_sources(path: Path, base_dir: Optional[Path] = None) -> dict[str, str]:
    """
    Read a Solidity file and every file it imports, recursively.

    Keys are the source unit names solc will look the files up by: the
    resolved main path, relative imports normalized against their importing
    file, and other imports verbatim (found under base_dir or
    base_dir/node_modules).

    Raises:
        CompilationError: the main file or an import cannot be read.
    """
    main = path.resolve()
    if base_dir is None:
        base_dir = main.parent

    sources: dict[str, str] = {}
    pending = [(main.as_posix(), main)]
    while pending:
        unit, file_path = pending.pop()
        if unit in sources:
            continue
        try:
            text = file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise CompilationError(f"Unable to read source {file_path}: {e}") from e
        sources[unit] = text
        for imported in get_import_paths(text):
            pending.append(_locate_import(unit, file_path, imported, base_dir))

    logger.info("Resolved %d source file(s) for %s", len(sources), main)
    return sources


def compile_sources(solc_input: Mapping[str, Any], solc: str = DEFAULT_SOLC) -> dict[str, Any]:
    """
    Run solc in standard-JSON mode and return its parsed output.

    Raises:
        CompilerNotFound: the solc binary cannot be executed.
        CompilationError: solc failed or reported errors.
    """
    try:
        proc = subprocess.run(
            [solc, "--standard-json"],
            input=json.dumps(solc_input),
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise CompilerNotFound(solc) from e

    try:
        output = json.loads(proc.stdout)
    except ValueError as e:
        raise CompilationError(
            f"Unable to compile: solc exited with {proc.returncode}",
            [proc.stderr.strip()] if proc.stderr else [],
        ) from e

    problems = output.get("errors") or []
    errors = [p for p in problems if p.get("severity") == "error"]
    for warning in (p for p in problems if p.get("severity") != "error"):
        logger.debug("solc: %s", warning.get("formattedMessage") or warning.get("message"))
    if errors:
        messages = [e.get("formattedMessage") or e.get("message", "") for e in errors]
        raise CompilationError("Unable to compile: " + messages[0].strip(), messages)

    if not output.get("contracts"):
        raise CompilationError("No contracts detected after compiling")
    return output


def get_compiled_contract(
    output: Mapping[str, Any],
    main_source: str,
    contract_name: Optional[str] = None,
) -> CompiledContract:
    """
    Select the contract to analyze from solc output.

    Without contract_name the contract with the largest bytecode wins: when
    inheritance is used the main contract contains the bytecode of the others.

    Raises:
        CompilationError: no contracts, unknown contract_name, empty bytecode
            (abstract contract or interface), or bytecode of the wrong shape.
    """
    contracts = (output.get("contracts") or {}).get(main_source) or {}
    if not contracts:
        raise CompilationError(f"No contracts found in {main_source}")

    if contract_name is not None:
        if contract_name not in contracts:
            raise CompilationError(
                f"No contracts found named {contract_name!r} in {main_source}"
            )
        name = contract_name
    else:
        # Last of the largest, matching declaration order for ties.
        name = max(
            reversed(list(contracts)),
            key=lambda n: len(_evm(contracts[n], "bytecode").get("object", "")),
        )

    contract = contracts[name]
    bytecode = _evm(contract, "bytecode")
    deployed = _evm(contract, "deployedBytecode")

    if not bytecode.get("object"):
        raise CompilationError(NO_BYTECODE_MESSAGE)
    if not BYTECODE_PATTERN.match(replace_linked_libs(bytecode["object"])):
        raise CompilationError(
            f"Generated bytecode fails to match the required pattern: {BYTECODE_PATTERN.pattern}"
        )

    logger.info("Selected contract %s from %s", name, main_source)
    return CompiledContract(
        name=name,
        source_path=main_source,
        bytecode=bytecode["object"],
        deployed_bytecode=deployed.get("object", ""),
        source_map=bytecode.get("sourceMap", ""),
        deployed_source_map=deployed.get("sourceMap", ""),
        method_identifiers=contract.get("evm", {}).get("methodIdentifiers") or {},
    )


def _evm(contract: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    return (contract.get("evm") or {}).get(key) or {}
