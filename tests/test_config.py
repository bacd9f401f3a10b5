"""Tests for bundlebuild.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from bundlebuild.config import (
    POLICY_CONTINUE,
    POLICY_STRICT,
    BuildConfig,
    ConfigurationError,
    RuleTemplate,
    load_config,
)
from bundlebuild.platform import detect_platform


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    build_dir = tmp_path / "build"
    build_dir.mkdir()

    config = load_config(build_dir)

    root = build_dir.resolve()
    assert isinstance(config, BuildConfig)
    assert config.root == root
    assert config.build_file == root / "orion.build.js"
    assert config.targets_file == root / "customTargets.xml"
    assert config.staging_dir == root / ".temp"
    assert config.optimizer_script == root / "r.js"
    assert config.bundles_root == tmp_path.resolve() / "bundles"
    assert config.bundle_web_folder("core") == tmp_path.resolve() / "bundles" / "core" / "web"
    assert config.optimizer.executable == "node"
    assert config.optimizer.verify_output is True
    assert config.failure_policy == POLICY_CONTINUE
    assert config.skip == frozenset()
    assert config.platform == detect_platform()
    assert config.command_timeout is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".bundlebuild.yml"
    config_file.write_text(
        """
build_file: profiles/site.build.js
targets_file: targets.xml
target_group: pages
staging_dir: out/staging
platform: windows
optimizer:
  executable: nodejs
  script: tools/r.js
  verify_output: false
bundles:
  root: ../../src/bundles
  web_folder: static
rewrite:
  extra_rules:
    - pattern: "{name}.css"
      replacement: "built-{name}.css"
failure_policy: strict
skip: [stage]
command_timeout: 300
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    root = tmp_path.resolve()
    assert config.build_file == root / "profiles" / "site.build.js"
    assert config.targets_file == root / "targets.xml"
    assert config.target_group == "pages"
    assert config.staging_dir == root / "out" / "staging"
    assert config.platform == "windows"
    assert config.optimizer.executable == "nodejs"
    assert config.optimizer_script == root / "tools" / "r.js"
    assert config.optimizer.verify_output is False
    # bundles.root resolves against the build file's directory
    assert config.bundles_root == (root / "profiles" / ".." / ".." / "src" / "bundles").resolve()
    assert config.bundles.web_folder == "static"
    assert config.rewrite.extra_rules == [RuleTemplate("{name}.css", "built-{name}.css")]
    assert config.strict
    assert config.skip == frozenset({"stage"})
    assert config.command_timeout == pytest.approx(300.0)


def test_load_config_applies_overrides(tmp_path: Path) -> None:
    (tmp_path / ".bundlebuild.yml").write_text("skip: [rewrite]\n", encoding="utf-8")
    other_build = tmp_path / "other.build.js"

    config = load_config(
        tmp_path,
        build_file=other_build,
        failure_policy=POLICY_STRICT,
        skip=["optimize"],
    )

    assert config.build_file == other_build.resolve()
    assert config.failure_policy == POLICY_STRICT
    assert config.skip == frozenset({"rewrite", "optimize"})


@pytest.mark.parametrize(
    "content, message",
    [
        ("failure_policy: sometimes\n", "failure_policy"),
        ("skip: [publish]\n", "Unknown phase"),
        ("platform: amiga\n", "platform"),
        ("- just\n- a list\n", "mapping"),
        ("optimizer: [unclosed\n", "Failed to parse"),
        ("rewrite:\n  extra_rules:\n    - pattern: ''\n      replacement: x\n", "rewrite rule"),
    ],
)
def test_load_config_rejects_invalid_values(tmp_path: Path, content: str, message: str) -> None:
    (tmp_path / ".bundlebuild.yml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigurationError, match=message):
        load_config(tmp_path)


def test_load_config_treats_empty_file_as_defaults(tmp_path: Path) -> None:
    (tmp_path / ".bundlebuild.yml").write_text("\n# nothing yet\n", encoding="utf-8")

    config = load_config(tmp_path / ".bundlebuild.yml")

    assert config.target_group == "requirejs"


def test_load_config_wraps_unreadable_file(tmp_path: Path) -> None:
    (tmp_path / ".bundlebuild.yml").write_bytes(b"platform: \xff\xfe posix\n")

    with pytest.raises(ConfigurationError, match="Unable to read"):
        load_config(tmp_path)


def test_load_config_wraps_os_errors(tmp_path: Path) -> None:
    (tmp_path / ".bundlebuild.yml").mkdir()

    with pytest.raises(ConfigurationError, match="Unable to read"):
        load_config(tmp_path)
