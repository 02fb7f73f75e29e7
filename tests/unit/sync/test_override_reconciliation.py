from __future__ import annotations

import logging
import shutil
import time
from typing import Tuple

import pytest

from adminstack.core.manifest import RuntimeConfig
from adminstack.core.materialize import CacheMaterializer, MergedTree
from adminstack.core.sync import LiveSyncWatcher, SyncEvent, SyncEventKind
from helpers.project import FakeProject


def _start_session(project: FakeProject) -> Tuple[LiveSyncWatcher, MergedTree]:
    cfg = project.admin_config()
    runtime = RuntimeConfig.from_config(cfg)
    stack = project.stack()
    tree = CacheMaterializer(cfg, runtime).materialize(stack)
    return LiveSyncWatcher(stack, tree, runtime, config=cfg), tree


@pytest.fixture
def users_project(project: FakeProject) -> FakeProject:
    project.add_plugin("strapi-plugin-users", {"src/lib.js": "// plugin lib\n"})
    project.add_plugin("strapi-plugin-upload")
    project.add_extension("users", "src/index.js", "// users override v1\n")
    return project


def test_modifying_extension_override_updates_only_its_destination(users_project: FakeProject) -> None:
    watcher, tree = _start_session(users_project)
    before = users_project.cache_files()
    override = users_project.root / "extensions" / "users" / "admin" / "src" / "index.js"
    override.write_text("// users override v2\n", encoding="utf-8")

    result = watcher.apply(SyncEvent(SyncEventKind.MODIFY, override.resolve()))

    after = users_project.cache_files()
    changed = {rel for rel in after if after[rel] != before.get(rel)}
    assert result.action == "copied"
    assert changed == {"plugins/strapi-plugin-users/admin/src/index.js"}
    assert after["plugins/strapi-plugin-users/admin/src/index.js"] == "// users override v2\n"
    assert set(after) == set(before)


def test_deleting_extension_override_restores_plugin_original(users_project: FakeProject) -> None:
    watcher, tree = _start_session(users_project)
    override = (users_project.root / "extensions" / "users" / "admin" / "src" / "index.js").resolve()
    override.unlink()

    result = watcher.apply(SyncEvent(SyncEventKind.DELETE_FILE, override))

    files = users_project.cache_files()
    assert result.action == "restored"
    assert result.manifest_regenerated is True
    assert files["plugins/strapi-plugin-users/admin/src/index.js"] == "// strapi-plugin-users entry\n"
    assert '"users":' in files["admin/src/plugins.js"]


def test_deleting_override_without_lower_counterpart_leaves_destination_absent(
    users_project: FakeProject,
) -> None:
    watcher, tree = _start_session(users_project)
    # The installed plugin loses its entry, so nothing below the override provides it.
    (users_project.package_dir("strapi-plugin-users") / "admin" / "src" / "index.js").unlink()
    override = (users_project.root / "extensions" / "users" / "admin" / "src" / "index.js").resolve()
    override.unlink()

    result = watcher.apply(SyncEvent(SyncEventKind.DELETE_FILE, override))

    files = users_project.cache_files()
    assert result.action == "removed"
    assert "plugins/strapi-plugin-users/admin/src/index.js" not in files
    assert result.manifest_regenerated is True
    assert '"users":' not in files["admin/src/plugins.js"]
    assert '"upload":' in files["admin/src/plugins.js"]


def test_deleting_unrelated_override_file_keeps_manifest(users_project: FakeProject) -> None:
    extra = users_project.add_extension("users", "src/extra.js", "// extra\n")
    watcher, tree = _start_session(users_project)
    manifest_before = tree.manifest_path.read_text(encoding="utf-8")
    extra.unlink()

    result = watcher.apply(SyncEvent(SyncEventKind.DELETE_FILE, extra.resolve()))

    assert result.action == "removed"
    assert result.manifest_regenerated is False
    assert not (tree.plugin_dir("strapi-plugin-users") / "admin" / "src" / "extra.js").exists()
    assert tree.manifest_path.read_text(encoding="utf-8") == manifest_before


def test_new_project_override_file_is_copied(project: FakeProject) -> None:
    project.add_override("src/app.js", "// project app\n")
    watcher, tree = _start_session(project)
    created = project.add_override("src/components/Logo.js", "// logo\n")

    result = watcher.apply(SyncEvent(SyncEventKind.CREATE, created.resolve()))

    assert result.action == "copied"
    assert (tree.admin_dir / "src" / "components" / "Logo.js").read_text(encoding="utf-8") == "// logo\n"


def test_deleting_project_app_override_restores_base_and_regenerates(project: FakeProject) -> None:
    project.add_plugin("strapi-plugin-users")
    app = project.add_override("src/app.js", "// project app\n")
    watcher, tree = _start_session(project)
    tree.manifest_path.write_text("// stale\n", encoding="utf-8")
    app.unlink()

    result = watcher.apply(SyncEvent(SyncEventKind.DELETE_FILE, app.resolve()))

    assert result.action == "restored"
    assert result.manifest_regenerated is True
    assert tree.entry_path.read_text(encoding="utf-8") == "// base app\nrequire('./plugins');\n"
    assert '"users":' in tree.manifest_path.read_text(encoding="utf-8")


def test_regeneration_keeps_project_manifest_override(users_project: FakeProject) -> None:
    users_project.add_override("src/plugins.js", "// custom manifest\n")
    watcher, tree = _start_session(users_project)
    override = (users_project.root / "extensions" / "users" / "admin" / "src" / "index.js").resolve()
    override.unlink()

    result = watcher.apply(SyncEvent(SyncEventKind.DELETE_FILE, override))

    assert result.action == "restored"
    assert result.manifest_regenerated is False
    assert tree.manifest_path.read_text(encoding="utf-8") == "// custom manifest\n"


def test_deleting_project_manifest_override_falls_back_to_generated(project: FakeProject) -> None:
    project.add_plugin("strapi-plugin-users")
    custom = project.add_override("src/plugins.js", "// custom manifest\n")
    watcher, tree = _start_session(project)
    custom.unlink()

    result = watcher.apply(SyncEvent(SyncEventKind.DELETE_FILE, custom.resolve()))

    assert result.manifest_regenerated is True
    assert '"users":' in tree.manifest_path.read_text(encoding="utf-8")


def test_deleting_project_override_directory_restores_base_subtree(project: FakeProject) -> None:
    project.add_override("src/app.js", "// project app\n")
    project.add_override("src/only-here.js", "// only in override\n")
    watcher, tree = _start_session(project)
    src_dir = (project.root / "admin" / "src").resolve()
    shutil.rmtree(src_dir)

    result = watcher.apply(SyncEvent(SyncEventKind.DELETE_DIR, src_dir))

    files = project.cache_files()
    assert result.action == "restored"
    assert result.manifest_regenerated is True
    assert files["admin/src/app.js"] == "// base app\nrequire('./plugins');\n"
    assert "admin/src/only-here.js" not in files
    assert "admin/src/plugins.js" in files


def test_event_outside_watched_roots_is_ignored(project: FakeProject) -> None:
    watcher, tree = _start_session(project)
    stray = project.root / "src" / "server.js"

    result = watcher.apply(SyncEvent(SyncEventKind.MODIFY, stray))

    assert result.action == "ignored"


def test_create_for_vanished_source_is_ignored(project: FakeProject) -> None:
    watcher, tree = _start_session(project)
    gone = (project.root / "admin" / "src" / "tmp.js").resolve()

    result = watcher.apply(SyncEvent(SyncEventKind.CREATE, gone))

    assert result.action == "ignored"
    assert not (tree.admin_dir / "src" / "tmp.js").exists()


def test_failed_event_is_reported_and_logged(project: FakeProject, caplog: pytest.LogCaptureFixture) -> None:
    watcher, tree = _start_session(project)
    (tree.admin_dir / "src" / "widgets").write_text("not a directory\n", encoding="utf-8")
    created = project.add_override("src/widgets/Chart.js", "// chart\n")

    with caplog.at_level(logging.WARNING, logger="adminstack"):
        result = watcher.apply(SyncEvent(SyncEventKind.CREATE, created.resolve()))

    assert result.action == "failed"
    assert result.error
    assert "Could not sync create" in caplog.text
    assert watcher.results[-1] is result


def test_queued_events_apply_in_arrival_order(users_project: FakeProject) -> None:
    watcher, tree = _start_session(users_project)
    ext = (users_project.root / "extensions" / "users" / "admin" / "src").resolve()
    dest = tree.plugin_dir("strapi-plugin-users") / "admin" / "src" / "notes.js"
    (ext / "notes.js").write_text("// notes\n", encoding="utf-8")
    try:
        watcher.submit(SyncEvent(SyncEventKind.CREATE, ext / "notes.js"))
        watcher.submit(SyncEvent(SyncEventKind.MODIFY, ext / "notes.js"))
        (ext / "notes.js").unlink()
        watcher.submit(SyncEvent(SyncEventKind.DELETE_FILE, ext / "notes.js"))
        assert watcher.drain(timeout=10) is True
    finally:
        watcher.stop()

    assert [r.event.kind for r in watcher.results] == [
        SyncEventKind.CREATE,
        SyncEventKind.MODIFY,
        SyncEventKind.DELETE_FILE,
    ]
    assert watcher.results[-1].action == "removed"
    assert not dest.exists()


def test_drain_without_queued_events_returns_immediately(project: FakeProject) -> None:
    watcher, _ = _start_session(project)

    assert watcher.drain(timeout=0.1) is True


def test_extension_regeneration_waits_for_admin_lock(users_project: FakeProject) -> None:
    watcher, tree = _start_session(users_project)
    override = (users_project.root / "extensions" / "users" / "admin" / "src" / "index.js").resolve()
    override.unlink()
    tree.manifest_path.write_text("// stale\n", encoding="utf-8")

    try:
        with watcher.reconciler.admin_lock:
            watcher.submit(SyncEvent(SyncEventKind.DELETE_FILE, override))
            time.sleep(0.3)
            assert watcher.results == []
            assert tree.manifest_path.read_text(encoding="utf-8") == "// stale\n"
        assert watcher.drain(timeout=10) is True
    finally:
        watcher.stop()

    assert watcher.results[-1].manifest_regenerated is True
    assert '"users":' in tree.manifest_path.read_text(encoding="utf-8")


def test_queued_stray_event_does_not_stall_dispatcher(project: FakeProject) -> None:
    watcher, tree = _start_session(project)
    created = project.add_override("src/late.js", "// late\n").resolve()
    try:
        watcher.submit(SyncEvent(SyncEventKind.MODIFY, project.root / "server.js"))
        watcher.submit(SyncEvent(SyncEventKind.CREATE, created))
        assert watcher.drain(timeout=10) is True
    finally:
        watcher.stop()

    assert sorted(r.action for r in watcher.results) == ["copied", "ignored"]
    assert (tree.admin_dir / "src" / "late.js").read_text(encoding="utf-8") == "// late\n"
