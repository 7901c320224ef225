"""Tests for reference cycle detection."""

import pytest

from selefra_cli.module_graph.cycles import detect_cycles
from selefra_cli.module_graph.cycles import find_cycle
from selefra_cli.module_graph.discovery import discover_graph
from selefra_cli.module_graph.errors import CircularReferenceError


def test_acyclic_graph_passes(workspace, write_yaml, make_resolver):
    write_yaml("main.yaml", {"modules": [{"name": "root", "uses": ["./child.yaml"]}]})
    write_yaml("child.yaml", {"modules": [{"name": "child", "uses": []}]})
    graph = discover_graph(workspace, make_resolver())

    assert find_cycle(graph) is None
    detect_cycles(graph)


def test_three_document_cycle_reports_full_chain(workspace, write_yaml, make_resolver):
    a = write_yaml("a.yaml", {"modules": [{"name": "a", "uses": ["./b.yaml"]}]})
    b = write_yaml("b.yaml", {"modules": [{"name": "b", "uses": ["./c.yaml"]}]})
    c = write_yaml("c.yaml", {"modules": [{"name": "c", "uses": ["./a.yaml"]}]})
    graph = discover_graph(workspace, make_resolver())

    with pytest.raises(CircularReferenceError) as exc_info:
        detect_cycles(graph)

    error = exc_info.value
    assert error.chain == [a, b, c, a]
    assert error.display_chain == ["a.yaml", "b.yaml", "c.yaml", "a.yaml"]
    assert "Modules have circular references: a.yaml -> b.yaml -> c.yaml -> a.yaml" in str(error)


def test_self_reference_is_a_cycle(workspace, write_yaml, make_resolver):
    write_yaml("root.yaml", {"modules": [{"name": "entry", "uses": ["./loop/self.yaml"]}]})
    loop = write_yaml("loop/self.yaml", {"modules": [{"name": "me", "uses": ["./self.yaml"]}]})
    graph = discover_graph(workspace, make_resolver())

    assert find_cycle(graph) == [loop, loop]


def test_diamond_is_not_a_cycle(workspace, write_yaml, make_resolver):
    write_yaml("top.yaml", {"modules": [{"name": "l", "uses": ["./left.yaml"]}, {"name": "r", "uses": ["./right.yaml"]}]})
    write_yaml("left.yaml", {"modules": [{"name": "left", "uses": ["./shared.yaml"]}]})
    write_yaml("right.yaml", {"modules": [{"name": "right", "uses": ["./shared.yaml"]}]})
    write_yaml("shared.yaml", {"modules": [{"name": "shared", "uses": []}]})
    graph = discover_graph(workspace, make_resolver())

    assert find_cycle(graph) is None
