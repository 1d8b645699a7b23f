"""Tests for ${...} reference resolution."""

from __future__ import annotations

from infracheck_cli.core.config_tree import ConfigTree
from infracheck_cli.core.resolver import is_unresolved, resolve

TREE = ConfigTree({"nas": {"root": "/nas2"}, "flag": True, "port": 8443, "self": "${nas.root}"})


def test_found_key_is_substituted():
    assert resolve("${nas.root}/key.pem", TREE) == "/nas2/key.pem"


def test_default_used_when_key_missing():
    empty = ConfigTree()
    assert resolve("${nas.root:/nas/default}/key.pem", empty) == "/nas/default/key.pem"


def test_found_key_beats_default():
    assert resolve("${nas.root:/nas/default}/key.pem", TREE) == "/nas2/key.pem"


def test_unknown_key_without_default_is_left_untouched():
    value = resolve("${missing.key}/x", TREE)
    assert value == "${missing.key}/x"
    assert is_unresolved(value)


def test_default_may_contain_colons():
    assert resolve("${api.url:https://api.example.org:8443}", ConfigTree()) == "https://api.example.org:8443"


def test_multiple_spans_and_scalar_forms():
    assert resolve("https://h:${port}/${flag}", TREE) == "https://h:8443/true"


def test_single_pass_does_not_reresolve_substituted_text():
    assert resolve("${self}", TREE) == "${nas.root}"


def test_plain_and_none_values_pass_through():
    assert resolve("/nas/plain.pem", TREE) == "/nas/plain.pem"
    assert resolve(None, TREE) is None
    assert not is_unresolved(None)
