"""Tests for directory expansion."""

import pytest

from selefra_cli.module_graph import expander
from selefra_cli.module_graph.errors import ReferenceNotFoundError
from selefra_cli.module_graph.expander import expand_declaration
from selefra_cli.module_graph.expander import list_directory_documents
from selefra_cli.module_graph.models import DeclarationOrigin
from selefra_cli.module_graph.models import Reference
from selefra_cli.module_graph.models import ReferenceKind
from selefra_cli.module_graph.models import ResolvedDeclaration
from selefra_cli.module_graph.models import ResolvedReference


def _declaration(document, *targets):
    references = tuple(
        ResolvedReference(
            reference=Reference(raw=str(t), kind=ReferenceKind.LOCAL, path=str(t)),
            target=t,
            emitted=str(t),
        )
        for t in targets
    )
    return ResolvedDeclaration(
        name="rules",
        references=references,
        origin=DeclarationOrigin(document=document, index=0),
        input={"severity": "high"},
    )


def _touch(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("rules: []\n", encoding="utf-8")
    return path.resolve()


def test_directory_expands_into_one_clone_per_file_in_listing_order(workspace):
    rules = workspace / "rules"
    c = _touch(rules / "c.yaml")
    a = _touch(rules / "a.yaml")
    b = _touch(rules / "b.yaml")
    _touch(rules / "README.md")
    _touch(rules / "nested" / "d.yaml")
    declaration = _declaration(workspace / "main.yaml", rules.resolve())

    clones = expand_declaration(declaration, workspace / "main.yaml")

    assert [clone.references[0].target for clone in clones] == [a, b, c]
    assert all(len(clone.references) == 1 for clone in clones)
    assert all(clone.name == "rules" for clone in clones)
    assert all(clone.input == {"severity": "high"} for clone in clones)
    assert all(clone.origin == declaration.origin for clone in clones)
    assert clones[0].references[0].emitted == str(a)


def test_directory_expansion_excludes_referencing_document(workspace):
    main = _touch(workspace / "main.yaml")
    other = _touch(workspace / "other.yaml")

    clones = expand_declaration(_declaration(main, workspace), main)

    assert [clone.references[0].target for clone in clones] == [other]


def test_file_reference_is_unchanged(workspace):
    rule = _touch(workspace / "rule.yaml")
    declaration = _declaration(workspace / "main.yaml", rule)

    assert expand_declaration(declaration, workspace / "main.yaml") == [declaration]


def test_multiple_references_are_not_expanded(workspace):
    rule = _touch(workspace / "rule.yaml")
    rules_dir = workspace / "rules"
    _touch(rules_dir / "a.yaml")
    declaration = _declaration(workspace / "main.yaml", rule, rules_dir)

    assert expand_declaration(declaration, workspace / "main.yaml") == [declaration]


def test_empty_directory_is_unchanged(workspace):
    empty = workspace / "empty"
    empty.mkdir()
    declaration = _declaration(workspace / "main.yaml", empty)

    assert expand_declaration(declaration, workspace / "main.yaml") == [declaration]


def test_unreadable_directory_raises_not_found_with_context(workspace, monkeypatch):
    rules = workspace / "rules"
    rules.mkdir()
    main = workspace / "main.yaml"
    declaration = _declaration(main, rules.resolve())

    def deny(directory):
        raise PermissionError(13, "Permission denied", str(directory))

    monkeypatch.setattr(expander, "list_directory", deny)

    with pytest.raises(ReferenceNotFoundError, match="Cannot list module directory") as exc_info:
        expand_declaration(declaration, main)

    assert exc_info.value.reference == str(rules.resolve())
    assert exc_info.value.document == main
    assert isinstance(exc_info.value.__cause__, PermissionError)


def test_list_directory_documents_is_not_recursive(workspace):
    top = _touch(workspace / "top.yaml")
    _touch(workspace / "deep" / "inner.yaml")

    assert list_directory_documents(workspace) == [top]
