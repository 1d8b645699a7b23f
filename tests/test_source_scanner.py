"""Tests for the static Java source scan."""

from __future__ import annotations

import logging

from infracheck_cli.core.analyze.source_scanner import SourceScanner, has_surrogates, unquote_java_string

KEY_CONFIG = """
package com.abc.app;

import io.swagger.v3.oas.annotations.media.Schema;

public class KeyConfig {

    private static final String KEY = "/nas2/key/signed.der";
    private final String instanceOnly = "/opt/app/instance.pem";

    @Schema(example = "/nas/doc/example-only.pem")
    private String documented;

    @Deprecated
    public String fetch(Client client) {
        client.call("https://api.abc.co.kr/v1/users");
        return client.call("http://localhost:8080/health");
    }
}
"""


def _scanner(project, classifier):
    return SourceScanner(project / "src" / "main" / "java", classifier)


def test_collects_constants_and_call_site_literals(make_project, classifier):
    project = make_project(sources={"com/abc/app/KeyConfig.java": KEY_CONFIG})
    scanner = _scanner(project, classifier)
    assert scanner.scan_paths() == {"/nas2/key/signed.der", "/opt/app/instance.pem"}
    assert scanner.scan_urls() == {"https://api.abc.co.kr/v1/users"}


def test_annotation_arguments_are_excluded(make_project, classifier):
    source = """
    package a;

    @RequestMapping("/var/app/mapping")
    public class Api {
        @Value("${nas.root:/nas/value/default.pem}")
        private String injected;

        public String ok() { return "/var/app/runtime"; }
    }
    """
    project = make_project(sources={"a/Api.java": source})
    paths = _scanner(project, classifier).scan_paths()
    assert paths == {"/var/app/runtime"}


def test_test_trees_are_skipped(make_project, classifier):
    project = make_project(sources={
        "a/Main.java": 'package a; class Main { String p = "/nas/main/key.pem"; }',
        "a/test/Fixture.java": 'package a.test; class Fixture { String p = "/nas/fixture/key.pem"; }',
    })
    assert _scanner(project, classifier).scan_paths() == {"/nas/main/key.pem"}


def test_unparsable_file_does_not_abort_scan(make_project, classifier, caplog):
    project = make_project(sources={
        "a/Broken.java": "package a; class Broken { String p = \"/nas/broken/key.pem\"; ",
        "a/Good.java": 'package a; class Good { static final String U = "https://pay.vendor.com/api"; }',
    })
    scanner = _scanner(project, classifier)
    with caplog.at_level(logging.DEBUG):
        result = scanner.scan()
    assert result.urls == {"https://pay.vendor.com/api"}
    assert result.paths == frozenset()
    assert result.files_scanned == 1
    assert result.files_skipped == 1


def test_missing_source_root_yields_empty_result(tmp_path, classifier):
    result = SourceScanner(tmp_path / "nope", classifier).scan()
    assert result.paths == frozenset() and result.urls == frozenset()


def test_scan_result_is_cached(make_project, classifier):
    project = make_project(sources={"a/A.java": 'package a; class A { String u = "https://x.abc.co.kr"; }'})
    scanner = _scanner(project, classifier)
    first = scanner.scan()
    (project / "src" / "main" / "java" / "a" / "A.java").unlink()
    assert scanner.scan() is first


def test_unquote_java_string():
    assert unquote_java_string('"/nas/a.pem"') == "/nas/a.pem"
    assert unquote_java_string('"a\\tb\\"c\\\\"') == 'a\tb"c\\'
    assert unquote_java_string('"\\u0041"') == "A"


def test_unquote_joins_surrogate_pairs():
    assert unquote_java_string('"\\uD83D\\uDE00"') == "\U0001F600"
    assert has_surrogates(unquote_java_string('"\\uD83D"'))


def test_surrogate_escapes_in_urls(make_project, classifier):
    source = """
    package a;

    class Links {
        String paired = "https://api.abc.co.kr/\\uD83D\\uDE00";
        String lone = "https://api.abc.co.kr/\\uDE00broken";
    }
    """
    project = make_project(sources={"a/Links.java": source})
    urls = _scanner(project, classifier).scan_urls()
    assert urls == {"https://api.abc.co.kr/\U0001F600"}
