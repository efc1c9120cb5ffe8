# Analysis request payload: bytecode, source maps, ASTs/sources and the source list.

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

if TYPE_CHECKING:
    from sabre.compiler import CompiledContract

# Unlinked library placeholder emitted by solc >= 0.5 (__$<34 hex chars>$__).
LINK_PLACEHOLDER = re.compile(r"__\$\w+\$__")
ZERO_ADDRESS = "0" * 40

DEFAULT_CLIENT_TOOL_NAME = "sabre"


def replace_linked_libs(bytecode: str) -> str:
    """Dynamic linking is not supported: point every library at the zero address."""
    return LINK_PLACEHOLDER.sub(ZERO_ADDRESS, bytecode)


def get_source_list(compiled_output: Mapping[str, Any]) -> list[str]:
    """File paths of a solc output ordered by source id (the index used in source maps)."""
    sources = compiled_output.get("sources") or {}
    return [
        path
        for path, _ in sorted(sources.items(), key=lambda item: item[1].get("id", 0))
    ]


def get_request_data(
    contract: "CompiledContract",
    compiled_output: Mapping[str, Any],
    sources: Mapping[str, Any],
    main_source: str,
    mode: str,
    source_list: Optional[Sequence[str]] = None,
) -> dict[str, Any]:
    """
    Build the ``data`` object submitted for analysis.

    Args:
        contract: The contract selected from the compiler output.
        compiled_output: solc standard-JSON output (for per-file ASTs).
        sources: Compiler input sources, path -> {"content": text} or text.
        main_source: Path of the file the user asked to analyze.
        mode: Analysis mode (quick, standard, full, deep).
        source_list: Overrides the list derived from compiled_output.
    """
    if source_list is None:
        source_list = get_source_list(compiled_output)

    compiled_sources = compiled_output.get("sources") or {}
    request_sources: dict[str, dict[str, Any]] = {}
    for path in source_list:
        entry: dict[str, Any] = {}
        ast = (compiled_sources.get(path) or {}).get("ast")
        if ast is not None:
            entry["ast"] = ast
        text = sources.get(path)
        if isinstance(text, Mapping):
            text = text.get("content")
        if isinstance(text, str):
            entry["source"] = text
        request_sources[path] = entry

    return {
        "contractName": contract.name,
        "bytecode": replace_linked_libs(contract.bytecode),
        "sourceMap": contract.source_map,
        "deployedBytecode": replace_linked_libs(contract.deployed_bytecode),
        "deployedSourceMap": contract.deployed_source_map,
        "mainSource": main_source,
        "sourceList": list(source_list),
        "sources": request_sources,
        "analysisMode": mode,
    }


def get_submission(
    data: Mapping[str, Any],
    client_tool_name: str = DEFAULT_CLIENT_TOOL_NAME,
    no_cache_lookup: bool = False,
) -> dict[str, Any]:
    """Wrap request data in the body POSTed to the analyses endpoint."""
    return {
        "clientToolName": client_tool_name,
        "noCacheLookup": no_cache_lookup,
        "data": dict(data),
    }
