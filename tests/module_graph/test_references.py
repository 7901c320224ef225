"""Tests for reference classification."""

import pytest

from selefra_cli.module_graph.errors import ReferenceMalformedError
from selefra_cli.module_graph.models import ReferenceKind
from selefra_cli.module_graph.references import parse_reference


def test_relative_path_is_local():
    ref = parse_reference("./rules/s3.yaml")
    assert ref.kind is ReferenceKind.LOCAL
    assert ref.path == "./rules/s3.yaml"
    assert not ref.is_package


def test_absolute_path_is_local():
    ref = parse_reference("/etc/selefra/rules")
    assert ref.kind is ReferenceKind.LOCAL
    assert ref.path == "/etc/selefra/rules"


def test_home_package_with_version():
    ref = parse_reference("selefra/rules-aws-misconfigure-s3@v0.0.4")
    assert ref.kind is ReferenceKind.HOME_PACKAGE
    assert ref.name == "rules-aws-misconfigure-s3"
    assert ref.version == "v0.0.4"
    assert ref.path == ""
    assert ref.is_package


def test_home_package_without_version_and_with_subpath():
    ref = parse_reference("selefra/rules-aws/modules/s3.yaml")
    assert ref.name == "rules-aws"
    assert ref.version is None
    assert ref.path == "modules/s3.yaml"


def test_org_package():
    ref = parse_reference("app.selefra.io/acme/baseline@v1.2.0")
    assert ref.kind is ReferenceKind.ORG_PACKAGE
    assert ref.org == "acme"
    assert ref.name == "baseline"
    assert ref.version == "v1.2.0"


def test_org_package_respects_configured_host():
    ref = parse_reference("registry.example.com/acme/baseline", registry_host="registry.example.com")
    assert ref.kind is ReferenceKind.ORG_PACKAGE
    # The default host is now just a path
    assert parse_reference("app.selefra.io/acme/baseline", registry_host="registry.example.com").kind is (
        ReferenceKind.LOCAL
    )


def test_surrounding_whitespace_is_stripped():
    assert parse_reference("  ./a.yaml ").raw == "./a.yaml"


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "selefra/",
        "selefra/@v1",
        "selefra/rules@",
        "app.selefra.io/acme",
        "app.selefra.io//baseline",
    ],
)
def test_malformed_references(raw):
    with pytest.raises(ReferenceMalformedError) as exc_info:
        parse_reference(raw)
    assert exc_info.value.kind == "ReferenceMalformed"
