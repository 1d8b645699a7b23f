"""Tests for per-profile document assembly."""

from __future__ import annotations

import textwrap

import pytest
import yaml

from infracheck_cli.core.analyze.assembler import RequirementsAssembler, determine_namespace
from infracheck_cli.core.analyze.extractor import InfrastructureExtractor
from infracheck_cli.core.analyze.types import (
    FileFinding,
    LocationClass,
    Platform,
    ResourceKind,
)
from infracheck_cli.core.config_tree import ConfigTree


def tree_of(text: str) -> ConfigTree:
    return ConfigTree(yaml.safe_load(textwrap.dedent(text)) or {})


def nas_file(path: str) -> FileFinding:
    return FileFinding(path, LocationClass.SHARED_STORAGE, True, path)


@pytest.fixture
def k8s() -> RequirementsAssembler:
    return RequirementsAssembler("demo-service", Platform.KUBERNETES)


@pytest.mark.parametrize("profile, namespace", [
    ("dev", "development"),
    ("stage", "staging"),
    ("stg", "staging"),
    ("prod", "production"),
    ("qa", "default"),
    ("", "default"),
])
def test_determine_namespace(profile, namespace):
    assert determine_namespace(profile) == namespace


def test_default_configmap(k8s):
    [configmap] = k8s.extract_configmaps(tree_of("a: 1"))
    assert configmap.name == "app-config"
    assert configmap.critical is True
    assert configmap.synthesized is True
    assert configmap.to_dict() == {
        "name": "app-config",
        "critical": True,
        "description": "application base configuration",
    }


def test_explicit_configmaps_replace_default(k8s):
    tree = tree_of("""
        infrastructure:
          validation:
            configmaps:
              - name: feature-flags
                critical: false
              - description: nameless
    """)
    configmaps = k8s.extract_configmaps(tree)
    assert [(c.name, c.critical, c.description) for c in configmaps] == [("feature-flags", False, "feature-flags")]


def test_secret_heuristics(k8s):
    tree = tree_of("""
        spring:
          cloud:
            vault:
              uri: https://vault.abc.co.kr
          data:
            redis:
              host: redis.abc.co.kr
    """)
    secrets = k8s.extract_secrets(tree, [nas_file("/nas/key/a.pem")])
    assert [s.name for s in secrets] == ["vault-token", "redis-credentials", "file-keys"]
    assert all(s.kind is ResourceKind.SECRET and s.critical for s in secrets)


def test_no_secrets_without_triggers(k8s):
    assert k8s.extract_secrets(tree_of("app: {name: x}"), []) == []


def test_explicit_secrets_replace_heuristics(k8s):
    tree = tree_of("""
        spring:
          redis:
            host: redis
        infrastructure:
          validation:
            secrets:
              - name: db-password
                description: database password
    """)
    secrets = k8s.extract_secrets(tree, [nas_file("/nas/key/a.pem")])
    assert [(s.name, s.description, s.synthesized) for s in secrets] == [("db-password", "database password", False)]


def test_pvcs_grouped_by_two_segment_root(k8s):
    files = [
        nas_file("/nas2/key/signed.der"),
        nas_file("/nas2/key/other.pem"),
        nas_file("/nas2/data/report.json"),
        nas_file("/nas"),
        FileFinding("/opt/app/a.pem", LocationClass.LOCAL, True, "local"),
    ]
    pvcs = k8s.extract_pvcs(tree_of("a: 1"), files)
    assert [(p.name, p.mount_path, p.description) for p in pvcs] == [
        ("nas-nas2-key", "/nas2/key", "NAS storage: /nas2/key"),
        ("nas-nas2-data", "/nas2/data", "NAS storage: /nas2/data"),
    ]
    assert pvcs[0].to_dict() == {
        "name": "nas-nas2-key",
        "critical": True,
        "description": "NAS storage: /nas2/key",
        "mountPath": "/nas2/key",
    }


def test_pvc_names_are_sanitized(k8s):
    [pvc] = k8s.extract_pvcs(tree_of("a: 1"), [nas_file("/mnt/NAS_Share/key.pem")])
    assert pvc.name == "nas-mnt-nas-share"
    assert pvc.mount_path == "/mnt/NAS_Share"


def test_explicit_pvcs_accept_either_mount_key(k8s):
    tree = tree_of("""
        infrastructure:
          validation:
            pvcs:
              - name: shared
                mountPath: /nas/shared
              - name: legacy
                mount-path: /nas/legacy
    """)
    pvcs = k8s.extract_pvcs(tree, [nas_file("/nas2/key/a.pem")])
    assert [(p.name, p.mount_path) for p in pvcs] == [("shared", "/nas/shared"), ("legacy", "/nas/legacy")]


def test_vm_document_shape(classifier):
    tree = tree_of("""
        infrastructure:
          validation:
            company-domain: abc.co.kr
            files:
              - path: /nas2/key/signed.der
            apis:
              - url: https://api.abc.co.kr/v1/users
            directories:
              - path: /var/app/logs
                permissions: rw
    """)
    document = RequirementsAssembler("demo-service", Platform.VM).assemble(
        "prod", InfrastructureExtractor(tree, None, classifier)
    )
    data = document.to_dict()
    assert list(data) == ["version", "project", "environment", "platform", "infrastructure"]
    assert data["version"] == "1.0"
    assert data["platform"] == "vm"
    assert data["environment"] == "prod"
    assert list(data["infrastructure"]) == ["company_domain", "files", "external_apis", "directories"]
    assert data["infrastructure"]["directories"] == [
        {"path": "/var/app/logs", "permissions": "rw", "critical": True, "description": ""},
    ]


def test_kubernetes_document_shape(classifier):
    tree = tree_of("""
        infrastructure:
          validation:
            files:
              - path: /nas2/key/signed.der
            directories:
              - path: /var/app/logs
    """)
    document = RequirementsAssembler("demo-service", Platform.KUBERNETES).assemble(
        "dev", InfrastructureExtractor(tree, None, classifier)
    )
    infrastructure = document.to_dict()["infrastructure"]
    assert list(infrastructure) == [
        "company_domain", "namespace", "files", "external_apis", "configmaps", "secrets", "pvcs",
    ]
    assert infrastructure["namespace"] == "development"
    assert [s["name"] for s in infrastructure["secrets"]] == ["file-keys"]
    assert [p["name"] for p in infrastructure["pvcs"]] == ["nas-nas2-key"]
    assert "directories" not in infrastructure


def test_explicit_pvc_without_mount_path_omits_key(k8s):
    tree = tree_of("""
        infrastructure:
          validation:
            pvcs:
              - name: scratch
    """)
    [pvc] = k8s.extract_pvcs(tree, [])
    assert pvc.mount_path is None
    assert pvc.to_dict() == {"name": "scratch", "critical": True, "description": "scratch"}
