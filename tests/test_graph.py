"""Tests for scope mapping, dependency accumulation and requested-by inversion."""

from __future__ import annotations

import pytest

from gradle_buildinfo.graph import (
    add_dependency,
    add_edge,
    build_requested_by_map,
    collect_tree,
    map_configuration_to_scopes,
    merge_scopes,
    normalize_scopes,
)
from gradle_buildinfo.models import DependencyTree, DependencyTreeNode, Scope


class TestConfigurationScopes:
    @pytest.mark.parametrize(
        "configuration, expected",
        [
            ("compileClasspath", Scope.COMPILE),
            ("runtimeClasspath", Scope.RUNTIME),
            ("testCompileClasspath", Scope.TEST),
            ("testRuntimeClasspath", Scope.TEST),
            ("debugUnitTestRuntimeClasspath", Scope.TEST),
            ("debugAndroidTestCompileClasspath", Scope.TEST),
            ("releaseCompileClasspath", Scope.COMPILE),
            ("releaseRuntimeClasspath", Scope.RUNTIME),
            ("compileOnly", Scope.COMPILE),
            ("runtimeOnly", Scope.RUNTIME),
            ("api", Scope.COMPILE),
            ("compile", Scope.COMPILE),
            ("runtime", Scope.RUNTIME),
            ("providedCompile", Scope.PROVIDED),
            ("providedRuntime", Scope.PROVIDED),
            ("implementation", Scope.COMPILE),
            ("kapt", Scope.COMPILE),
        ],
    )
    def test_mapping(self, configuration, expected):
        assert map_configuration_to_scopes(configuration) == {expected}

    def test_case_insensitive(self):
        assert map_configuration_to_scopes("TESTIMPLEMENTATION") == {Scope.TEST}


class TestMergeScopes:
    def test_union(self):
        scopes = {Scope.COMPILE}
        merge_scopes(scopes, {Scope.RUNTIME})
        assert scopes == {Scope.COMPILE, Scope.RUNTIME}

    def test_idempotent(self):
        once = merge_scopes({Scope.COMPILE}, [Scope.TEST, Scope.RUNTIME])
        twice = merge_scopes(merge_scopes({Scope.COMPILE}, [Scope.TEST, Scope.RUNTIME]), [Scope.TEST, Scope.RUNTIME])
        assert once == twice

    def test_order_independent(self):
        a = merge_scopes(merge_scopes(set(), [Scope.TEST]), [Scope.COMPILE])
        b = merge_scopes(merge_scopes(set(), [Scope.COMPILE]), [Scope.TEST])
        assert a == b

    def test_invalid_dropped(self):
        assert merge_scopes(set(), ["compile", "bogus", "system"]) == {Scope.COMPILE, Scope.SYSTEM}

    def test_never_shrinks(self):
        scopes = {Scope.TEST}
        merge_scopes(scopes, [])
        assert scopes == {Scope.TEST}


class TestNormalizeScopes:
    def test_sorted(self):
        assert normalize_scopes({Scope.TEST, Scope.COMPILE, Scope.RUNTIME}) == ["compile", "runtime", "test"]

    def test_empty_defaults_to_compile(self):
        assert normalize_scopes([]) == ["compile"]

    def test_only_invalid_defaults_to_compile(self):
        assert normalize_scopes(["weird"]) == ["compile"]


class TestAddDependency:
    def test_insert_and_merge(self):
        deps = {}
        first = add_dependency(deps, "a", "b", "1", {Scope.COMPILE})
        second = add_dependency(deps, "a", "b", "1", {Scope.RUNTIME})
        assert first == second == "a:b:1"
        assert deps["a:b:1"].scopes == {Scope.COMPILE, Scope.RUNTIME}

    def test_classifier_in_id(self):
        deps = {}
        assert add_dependency(deps, "a", "b", "1", {Scope.COMPILE}, classifier="x") == "a:b:1:x"
        assert deps["a:b:1:x"].classifier == "x"

    def test_classifier_and_plain_are_distinct(self):
        deps = {}
        add_dependency(deps, "a", "b", "1", {Scope.COMPILE})
        add_dependency(deps, "a", "b", "1", {Scope.COMPILE}, classifier="x")
        assert sorted(deps) == ["a:b:1", "a:b:1:x"]

    def test_type_kept(self):
        deps = {}
        add_dependency(deps, "a", "b", "1", {Scope.COMPILE}, dep_type="aar")
        assert deps["a:b:1"].type == "aar"


class TestGraph:
    def test_edges_unique_and_ordered(self):
        graph = {}
        add_edge(graph, "p", "b")
        add_edge(graph, "p", "a")
        add_edge(graph, "p", "b")
        assert graph == {"p": ["b", "a"]}

    def test_requested_by_sorted_and_unique(self):
        graph = {"z:z:1": ["c:c:1"], "a:a:1": ["c:c:1"], "m:m:1": ["c:c:1", "d:d:1"]}
        requested_by = build_requested_by_map(graph)
        assert requested_by["c:c:1"] == ["a:a:1", "m:m:1", "z:z:1"]
        assert requested_by["d:d:1"] == ["m:m:1"]

    def test_roots_have_no_requesters(self):
        assert "a:a:1" not in build_requested_by_map({"a:a:1": ["b:b:1"]})


class TestCollectTree:
    def test_placeholder_nodes_and_subtrees_skipped(self):
        tree = DependencyTree()
        root = tree.add(DependencyTreeNode("a", "b", "1"))
        hole = tree.add(DependencyTreeNode("x", "", "1"), root)
        tree.add(DependencyTreeNode("under", "hole", "1"), hole)
        tree.add(DependencyTreeNode("c", "d", "2"), root)

        deps, graph = {}, {}
        collect_tree(tree, {Scope.RUNTIME}, deps, graph)
        assert sorted(deps) == ["a:b:1", "c:d:2"]
        assert graph == {"a:b:1": ["c:d:2"]}

    def test_scopes_merge_across_configurations(self):
        tree = DependencyTree()
        tree.add(DependencyTreeNode("a", "b", "1"))
        deps, graph = {}, {}
        collect_tree(tree, {Scope.COMPILE}, deps, graph)
        collect_tree(tree, {Scope.RUNTIME}, deps, graph)
        assert deps["a:b:1"].scopes == {Scope.COMPILE, Scope.RUNTIME}
