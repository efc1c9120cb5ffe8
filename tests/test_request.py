"""Tests for building the analysis request payload."""

from sabre.compiler import CompiledContract
from sabre.request import (
    ZERO_ADDRESS,
    get_request_data,
    get_source_list,
    get_submission,
    replace_linked_libs,
)

COMPILED = {
    "sources": {
        "/work/Token.sol": {"id": 1, "ast": {"nodeType": "SourceUnit", "id": 20}},
        "/work/SafeMath.sol": {"id": 0, "ast": {"nodeType": "SourceUnit", "id": 1}},
    }
}

SOURCES = {
    "/work/Token.sol": {"content": "import './SafeMath.sol';\ncontract Token {}"},
    "/work/SafeMath.sol": "library SafeMath {}",
}


def _contract(bytecode="6080604052", deployed="6080"):
    return CompiledContract(
        name="Token",
        source_path="/work/Token.sol",
        bytecode=bytecode,
        deployed_bytecode=deployed,
        source_map="0:10:1:-",
        deployed_source_map="0:8:1:-",
    )


def test_replace_linked_libs():
    placeholder = "__$" + "ab" * 17 + "$__"
    linked = replace_linked_libs("6080" + placeholder + "6000")
    assert linked == "6080" + ZERO_ADDRESS + "6000"
    assert replace_linked_libs("6080") == "6080"


def test_source_list_ordered_by_id():
    assert get_source_list(COMPILED) == ["/work/SafeMath.sol", "/work/Token.sol"]
    assert get_source_list({}) == []


def test_request_data_fields():
    data = get_request_data(_contract(), COMPILED, SOURCES, "/work/Token.sol", "quick")
    assert data["contractName"] == "Token"
    assert data["bytecode"] == "6080604052"
    assert data["deployedBytecode"] == "6080"
    assert data["sourceMap"] == "0:10:1:-"
    assert data["deployedSourceMap"] == "0:8:1:-"
    assert data["mainSource"] == "/work/Token.sol"
    assert data["analysisMode"] == "quick"
    assert data["sourceList"] == ["/work/SafeMath.sol", "/work/Token.sol"]


def test_request_sources_carry_ast_and_text():
    data = get_request_data(_contract(), COMPILED, SOURCES, "/work/Token.sol", "full")
    token = data["sources"]["/work/Token.sol"]
    assert token["ast"] == {"nodeType": "SourceUnit", "id": 20}
    assert token["source"].startswith("import")
    assert data["sources"]["/work/SafeMath.sol"]["source"] == "library SafeMath {}"


def test_request_with_explicit_source_list():
    data = get_request_data(
        _contract(), COMPILED, SOURCES, "/work/Token.sol", "quick", source_list=["/work/Token.sol", "/work/Missing.sol"]
    )
    assert data["sourceList"] == ["/work/Token.sol", "/work/Missing.sol"]
    assert data["sources"]["/work/Missing.sol"] == {}


def test_request_links_libraries():
    placeholder = "__$" + "cd" * 17 + "$__"
    data = get_request_data(
        _contract(bytecode="73" + placeholder, deployed=placeholder),
        COMPILED,
        SOURCES,
        "/work/Token.sol",
        "quick",
    )
    assert data["bytecode"] == "73" + ZERO_ADDRESS
    assert data["deployedBytecode"] == ZERO_ADDRESS


def test_submission_envelope():
    submission = get_submission({"contractName": "Token"}, "truffle", no_cache_lookup=True)
    assert submission == {
        "clientToolName": "truffle",
        "noCacheLookup": True,
        "data": {"contractName": "Token"},
    }
    assert get_submission({})["clientToolName"] == "sabre"
    assert get_submission({})["noCacheLookup"] is False
