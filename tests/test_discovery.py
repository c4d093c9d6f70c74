"""Tests for module discovery."""

from __future__ import annotations

from gradle_buildinfo.discovery import discover_modules, find_build_file, module_directory
from gradle_buildinfo.sandbox import PathSandbox


class TestRootModule:
    def test_group_without_version(self, make_project):
        root = make_project({"build.gradle": "group='com.acme'\n"})
        table = discover_modules(PathSandbox(root))
        module_id = table.root.module_id
        group, _, version = module_id.split(":")
        assert group == "com.acme"
        assert version == "unspecified"

    def test_root_project_name_wins(self, make_project):
        root = make_project(
            {
                "settings.gradle": "rootProject.name = 'svc'\n",
                "build.gradle": "name = 'ignored'\ngroup = 'g'\nversion = '1'\n",
            }
        )
        table = discover_modules(PathSandbox(root))
        assert table.root.artifact == "svc"
        assert table.root.module_id == "g:svc:1"

    def test_own_name_used_without_settings(self, make_project):
        root = make_project({"build.gradle": "name = 'own'\n"})
        assert discover_modules(PathSandbox(root)).root.artifact == "own"

    def test_directory_name_fallback(self, make_project):
        root = make_project({}, name="my-service")
        table = discover_modules(PathSandbox(root))
        assert table.root.artifact == "my-service"
        assert table.root.module_id == "unspecified:my-service:unspecified"
        assert table.order == [""]

    def test_kotlin_root_build_script(self, make_project):
        root = make_project({"build.gradle.kts": 'group = "org.k"\nversion = "3.1"\n'})
        table = discover_modules(PathSandbox(root))
        assert table.root.group == "org.k"
        assert table.root.version == "3.1"


class TestSubmodules:
    def test_include_and_include_build(self, make_project):
        root = make_project(
            {
                "settings.gradle": "include 'app'\nincludeBuild '../other'\n",
                "build.gradle": "group = 'g'\nversion = '1'\n",
                "app/build.gradle": "",
            }
        )
        table = discover_modules(PathSandbox(root))
        assert table.order == ["", "app"]
        assert all("other" not in m.module_id for m in table.metadata.values())

    def test_inherits_root_values(self, make_project):
        root = make_project(
            {
                "settings.gradle": "include ':app'\n",
                "build.gradle": "group = 'g'\nversion = '1'\n",
                "app/build.gradle": "plugins { id 'java' }\n",
            }
        )
        app = discover_modules(PathSandbox(root)).get("app")
        assert app.module_id == "g:app:1"

    def test_own_values_win(self, make_project):
        root = make_project(
            {
                "settings.gradle": "include ':lib'\n",
                "build.gradle": "group = 'g'\nversion = '1'\n",
                "lib/build.gradle": "group = 'other'\nversion = '2'\n",
            }
        )
        lib = discover_modules(PathSandbox(root)).get("lib")
        assert (lib.group, lib.artifact, lib.version) == ("other", "lib", "2")

    def test_missing_build_script_uses_dashed_path(self, make_project):
        root = make_project(
            {
                "settings.gradle": "include ':core:util'\n",
                "build.gradle": "group = 'g'\nversion = '1'\n",
            }
        )
        util = discover_modules(PathSandbox(root)).get("core:util")
        assert util.module_id == "g:core-util:1"

    def test_nested_directory_basename(self, make_project):
        root = make_project(
            {
                "settings.gradle": "include ':core:util'\n",
                "core/util/build.gradle": "",
            }
        )
        assert discover_modules(PathSandbox(root)).get("core:util").artifact == "util"

    def test_traversal_module_skipped(self, make_project):
        root = make_project(
            {
                "settings.gradle": "include 'app'\ninclude '..:..:etc'\n",
                "app/build.gradle": "",
            }
        )
        table = discover_modules(PathSandbox(root))
        assert table.order == ["", "app"]
        assert "..:..:etc" not in table.metadata
        assert all("etc" not in m.module_id for m in table.metadata.values())

    def test_settings_order_preserved(self, make_project):
        root = make_project({"settings.gradle": "include 'z', 'a', 'm'\n"})
        assert discover_modules(PathSandbox(root)).order == ["", "z", "a", "m"]


class TestBuildFileLookup:
    def test_groovy_wins_over_kotlin_in_submodule(self, make_project):
        root = make_project(
            {
                "app/build.gradle": "",
                "app/build.gradle.kts": "",
            }
        )
        assert find_build_file(PathSandbox(root), "app").name == "build.gradle"

    def test_kotlin_only(self, make_project):
        root = make_project({"app/build.gradle.kts": ""})
        assert find_build_file(PathSandbox(root), "app").name == "build.gradle.kts"

    def test_missing(self, make_project):
        root = make_project({})
        assert find_build_file(PathSandbox(root), "app") is None

    def test_module_directory(self, make_project):
        root = make_project({})
        sandbox = PathSandbox(root)
        assert module_directory(sandbox, "") == sandbox.base
        assert module_directory(sandbox, "a:b") == sandbox.base / "a" / "b"
