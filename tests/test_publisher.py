"""Tests for publishing built artifacts back into bundles."""

from __future__ import annotations

import threading
from pathlib import Path

from bundlebuild.models import TargetDescriptor
from bundlebuild.platform import WindowsCopyCommands
from bundlebuild.process import CommandResult, ProcessRunner
from bundlebuild.publisher import ResultPublisher
from tests._fixtures.build_tree import BuildTreeBuilder, FakeToolchain


def _stage_outputs(target: TargetDescriptor) -> None:
    target.staged_page_dir.mkdir(parents=True, exist_ok=True)
    target.staged_output_path.write_text("/* built */", encoding="utf-8")
    target.staged_html_path.write_text("<html></html>", encoding="utf-8")


def test_publish_copies_both_files_with_one_posix_command(build_tree: BuildTreeBuilder) -> None:
    build_tree.add_page("core", "edit", "edit")
    config = build_tree.config()
    target = TargetDescriptor.create("edit", "edit", "core", config.staging_dir)
    _stage_outputs(target)
    toolchain = FakeToolchain()

    result = ResultPublisher(config, ProcessRunner(executor=toolchain)).publish(target)

    destination = build_tree.web_folder("core") / "edit"
    assert result.ok
    assert toolchain.commands("cp") == [
        ["cp", str(target.staged_output_path), str(target.staged_html_path), str(destination)]
    ]
    assert (destination / "built-edit.js").read_text(encoding="utf-8") == "/* built */"
    assert (destination / "edit.html").read_text(encoding="utf-8") == "<html></html>"


def test_publish_dispatches_windows_copies_concurrently(build_tree: BuildTreeBuilder) -> None:
    config = build_tree.config()
    target = TargetDescriptor.create("edit", "edit", "core", config.staging_dir)
    barrier = threading.Barrier(2, timeout=5)
    calls = []

    def executor(args, cwd, timeout=None):  # type: ignore[no-untyped-def]
        # Both copies must be in flight at the same time to pass the barrier.
        barrier.wait()
        calls.append(list(args))
        return CommandResult(args=list(args), cwd=Path(cwd), returncode=0)

    publisher = ResultPublisher(config, ProcessRunner(executor=executor), WindowsCopyCommands())
    result = publisher.publish(target)

    assert result.ok
    assert len(result.commands) == 2
    assert sorted(call[5] for call in calls) == sorted(
        [str(target.staged_output_path), str(target.staged_html_path)]
    )


def test_publish_reports_failed_copy(build_tree: BuildTreeBuilder) -> None:
    config = build_tree.config()
    target = TargetDescriptor.create("edit", "edit", "core", config.staging_dir)

    result = ResultPublisher(config, ProcessRunner(executor=FakeToolchain())).publish(target)

    assert not result.ok
    assert "exited with 1" in (result.error or "")


def test_publish_all_keeps_declared_order(build_tree: BuildTreeBuilder) -> None:
    build_tree.add_page("core", "edit", "edit")
    build_tree.add_page("extra", "git", "git-log")
    config = build_tree.config()
    targets = [
        TargetDescriptor.create("git", "git-log", "extra", config.staging_dir),
        TargetDescriptor.create("edit", "edit", "core", config.staging_dir),
    ]
    for target in targets:
        _stage_outputs(target)
    toolchain = FakeToolchain()

    results = ResultPublisher(config, ProcessRunner(executor=toolchain)).publish_all(targets)

    assert [result.subject for result in results] == ["git/git-log", "edit/edit"]
    assert [args[-1] for args in toolchain.commands("cp")] == [
        str(build_tree.web_folder("extra") / "git"),
        str(build_tree.web_folder("core") / "edit"),
    ]


def test_destination_stays_inside_bundle_for_rooted_page_dir(build_tree: BuildTreeBuilder) -> None:
    config = build_tree.config()
    publisher = ResultPublisher(config, ProcessRunner(executor=FakeToolchain()))
    created = TargetDescriptor.create("/edit", "edit", "core", config.staging_dir)
    handmade = TargetDescriptor(
        page_dir="/edit",
        name="edit",
        bundle="core",
        staged_page_dir=created.staged_page_dir,
        staged_output_path=created.staged_output_path,
        staged_html_path=created.staged_html_path,
    )

    expected = build_tree.web_folder("core") / "edit"
    assert publisher.destination_for(created) == expected
    assert publisher.destination_for(handmade) == expected
    assert created.staged_html_path.is_relative_to(config.staging_dir)
