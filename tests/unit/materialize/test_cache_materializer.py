from __future__ import annotations

import logging
import shutil
from pathlib import Path

import pytest

from adminstack.core.exceptions import CopyFailure
from adminstack.core.manifest import RuntimeConfig, generate
from adminstack.core.materialize import CacheMaterializer, materialize
from helpers.project import FakeProject


def test_base_only_tree_contains_base_admin_and_empty_manifest(project: FakeProject) -> None:
    tree = materialize(project.root, config=project.admin_config())

    files = project.cache_files()
    assert files["admin/src/app.js"] == "// base app\nrequire('./plugins');\n"
    assert files["admin/src/containers/App/index.js"] == "// base App container\n"
    assert "const plugins = {};" in files["admin/src/plugins.js"]
    assert tree.entry_path == project.cache.resolve() / "admin" / "src" / "app.js"
    assert not (project.cache / "plugins").exists()


def test_declared_plugins_are_materialized_with_manifest(project: FakeProject) -> None:
    project.add_plugin("strapi-plugin-users", {"src/containers/Users.js": "// users list\n"})
    project.add_plugin("strapi-plugin-upload")

    materialize(project.root, config=project.admin_config())

    files = project.cache_files()
    assert files["plugins/strapi-plugin-users/admin/src/index.js"] == "// strapi-plugin-users entry\n"
    assert files["plugins/strapi-plugin-users/admin/src/containers/Users.js"] == "// users list\n"
    assert files["plugins/strapi-plugin-upload/admin/src/index.js"] == "// strapi-plugin-upload entry\n"
    assert "plugins/strapi-plugin-users/package.json" in files
    manifest = files["admin/src/plugins.js"]
    assert '"users": require("../../plugins/strapi-plugin-users/admin/src").default' in manifest
    assert '"upload": require("../../plugins/strapi-plugin-upload/admin/src").default' in manifest


def test_project_override_wins_over_base(project: FakeProject) -> None:
    project.add_override("src/app.js", "// project app\n")
    project.add_override("src/extra.js", "// project only\n")

    materialize(project.root, config=project.admin_config())

    files = project.cache_files()
    assert files["admin/src/app.js"] == "// project app\n"
    assert files["admin/src/extra.js"] == "// project only\n"
    assert files["admin/src/index.js"] == "// base index\n"


def test_project_override_may_replace_generated_manifest(project: FakeProject) -> None:
    project.add_override("src/plugins.js", "// hand-written manifest\n")

    materialize(project.root, config=project.admin_config())

    assert project.cache_files()["admin/src/plugins.js"] == "// hand-written manifest\n"


def test_extension_override_wins_over_plugin(project: FakeProject) -> None:
    project.add_plugin("strapi-plugin-users", {"src/lib.js": "// plugin lib\n"})
    project.add_extension("users", "src/index.js", "// overridden users entry\n")

    materialize(project.root, config=project.admin_config())

    files = project.cache_files()
    assert files["plugins/strapi-plugin-users/admin/src/index.js"] == "// overridden users entry\n"
    assert files["plugins/strapi-plugin-users/admin/src/lib.js"] == "// plugin lib\n"


def test_materialize_is_idempotent(project: FakeProject) -> None:
    project.add_plugin("strapi-plugin-users")
    project.add_plugin("strapi-plugin-upload")
    project.add_override("src/app.js", "// project app\n")
    project.add_extension("upload", "src/index.js", "// upload override\n")

    first_tree = materialize(project.root, config=project.admin_config())
    first = project.cache_files()
    second_tree = materialize(project.root, config=project.admin_config())

    assert project.cache_files() == first
    assert second_tree.relative_paths() == first_tree.relative_paths()
    assert Path("admin/src/plugins.js") in second_tree.relative_paths()


def test_stale_files_are_removed_on_rebuild(project: FakeProject) -> None:
    project.cache.mkdir()
    (project.cache / "stale.js").write_text("// leftover\n", encoding="utf-8")
    (project.cache / "plugins" / "strapi-plugin-gone").mkdir(parents=True)

    materialize(project.root, config=project.admin_config())

    assert not (project.cache / "stale.js").exists()
    assert not (project.cache / "plugins" / "strapi-plugin-gone").exists()


def test_layout_files_are_copied_when_present(project: FakeProject) -> None:
    project.install_base(layout="module.exports = { base: true };\n")
    project.add_plugin("strapi-plugin-users", layout="module.exports = { users: true };\n")
    project.add_plugin("strapi-plugin-upload")

    materialize(project.root, config=project.admin_config())

    files = project.cache_files()
    assert files["config/layout.js"] == "module.exports = { base: true };\n"
    assert files["plugins/strapi-plugin-users/config/layout.js"] == "module.exports = { users: true };\n"
    assert "plugins/strapi-plugin-upload/config/layout.js" not in files


def test_runtime_config_reaches_manifest(project: FakeProject) -> None:
    project.add_plugin("strapi-plugin-users")
    cfg = project.admin_config()
    runtime = RuntimeConfig.from_config(cfg, backend_url="https://cms.example.com")

    materialize(project.root, config=cfg, runtime_config=runtime)

    stack = project.stack()
    assert project.cache_files()["admin/src/plugins.js"] == generate(stack.plugins, runtime)


def test_plugin_copy_failure_is_logged_and_skipped(
    project: FakeProject, caplog: pytest.LogCaptureFixture
) -> None:
    project.add_plugin("strapi-plugin-users")
    project.add_plugin("strapi-plugin-upload")
    cfg = project.admin_config()
    stack = project.stack()
    (project.package_dir("strapi-plugin-users") / "package.json").unlink()

    with caplog.at_level(logging.WARNING, logger="adminstack"):
        CacheMaterializer(cfg).materialize(stack)

    files = project.cache_files()
    assert "plugins/strapi-plugin-upload/package.json" in files
    assert "plugins/strapi-plugin-users/package.json" not in files
    assert "Skipping plugin strapi-plugin-users" in caplog.text
    assert '"users":' in files["admin/src/plugins.js"]


def test_base_copy_failure_is_fatal(project: FakeProject) -> None:
    cfg = project.admin_config()
    stack = project.stack()
    shutil.rmtree(project.package_dir("strapi-admin") / "admin")

    with pytest.raises(CopyFailure):
        CacheMaterializer(cfg).materialize(stack)
