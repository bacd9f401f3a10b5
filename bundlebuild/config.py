"""Configuration loading for bundlebuild (.bundlebuild.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Sequence

import yaml

from .platform import PLATFORMS, detect_platform
from .targets import DEFAULT_TARGET_GROUP, ConfigurationError

CONFIG_FILENAME = ".bundlebuild.yml"

PHASE_STAGE = "stage"
PHASE_OPTIMIZE = "optimize"
PHASE_REWRITE = "rewrite"
PHASE_PUBLISH = "publish"
SKIPPABLE_PHASES = (PHASE_STAGE, PHASE_OPTIMIZE, PHASE_REWRITE)

POLICY_CONTINUE = "continue"
POLICY_STRICT = "strict"
FAILURE_POLICIES = (POLICY_CONTINUE, POLICY_STRICT)


@dataclass
class OptimizerConfig:
    """How the r.js optimizer is launched."""

    executable: str = "node"
    script: Optional[Path] = None
    verify_output: bool = True


@dataclass
class BundlesConfig:
    """Where bundle sources live."""

    root: Optional[Path] = None
    web_folder: str = "web"


@dataclass(frozen=True)
class RuleTemplate:
    """A configured HTML rewrite rule; ``{name}`` expands to the target name."""

    pattern: str
    replacement: str


@dataclass
class RewriteConfig:
    extra_rules: List[RuleTemplate] = field(default_factory=list)


@dataclass
class BuildConfig:
    """Effective settings for one pipeline run; every component reads from here."""

    root: Path
    build_file: Path
    targets_file: Path
    staging_dir: Path
    platform: str
    target_group: str = DEFAULT_TARGET_GROUP
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    bundles: BundlesConfig = field(default_factory=BundlesConfig)
    rewrite: RewriteConfig = field(default_factory=RewriteConfig)
    failure_policy: str = POLICY_CONTINUE
    skip: FrozenSet[str] = frozenset()
    command_timeout: Optional[float] = None

    @property
    def optimizer_script(self) -> Path:
        return self.optimizer.script or (self.root / "r.js")

    @property
    def bundles_root(self) -> Path:
        # The bundles folder sits beside the build file's directory by convention.
        return self.bundles.root or (self.build_file.parent / ".." / "bundles").resolve()

    def bundle_web_folder(self, bundle: str) -> Path:
        return self.bundles_root / bundle / self.bundles.web_folder

    @property
    def strict(self) -> bool:
        return self.failure_policy == POLICY_STRICT


def load_config(
    config_path: Path,
    *,
    build_file: Path | None = None,
    failure_policy: str | None = None,
    skip: Sequence[str] | None = None,
) -> BuildConfig:
    """Load configuration from disk, applying command-line overrides on top."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent
    data = _read_config(config_file) if config_file.exists() else {}

    resolved_build_file = (
        build_file.expanduser().resolve()
        if build_file is not None
        else _as_path(root, data.get("build_file")) or root / "orion.build.js"
    )

    optimizer_data = _as_dict(data.get("optimizer"))
    optimizer = OptimizerConfig(
        executable=_as_str(optimizer_data.get("executable")) or "node",
        script=_as_path(root, optimizer_data.get("script")),
        verify_output=_as_bool(optimizer_data.get("verify_output"), default=True),
    )

    bundles_data = _as_dict(data.get("bundles"))
    bundles = BundlesConfig(
        root=_as_path(resolved_build_file.parent, bundles_data.get("root")),
        web_folder=_as_str(bundles_data.get("web_folder")) or "web",
    )

    rewrite_data = _as_dict(data.get("rewrite"))
    rewrite = RewriteConfig(extra_rules=_as_rules(rewrite_data.get("extra_rules")))

    policy = failure_policy or _as_str(data.get("failure_policy")) or POLICY_CONTINUE
    if policy not in FAILURE_POLICIES:
        raise ConfigurationError(
            f"failure_policy must be one of {', '.join(FAILURE_POLICIES)}, got '{policy}'"
        )

    skipped = set(_as_str_list(data.get("skip")))
    skipped.update(skip or ())
    unknown = sorted(skipped.difference(SKIPPABLE_PHASES))
    if unknown:
        raise ConfigurationError(
            f"Unknown phase(s) in skip: {', '.join(unknown)}; expected {', '.join(SKIPPABLE_PHASES)}"
        )

    platform = _as_str(data.get("platform")) or detect_platform()
    if platform not in PLATFORMS:
        raise ConfigurationError(f"platform must be one of {', '.join(PLATFORMS)}, got '{platform}'")

    return BuildConfig(
        root=root,
        build_file=resolved_build_file,
        targets_file=_as_path(root, data.get("targets_file")) or root / "customTargets.xml",
        staging_dir=_as_path(root, data.get("staging_dir")) or root / ".temp",
        platform=platform,
        target_group=_as_str(data.get("target_group")) or DEFAULT_TARGET_GROUP,
        optimizer=optimizer,
        bundles=bundles,
        rewrite=rewrite,
        failure_policy=policy,
        skip=frozenset(skipped),
        command_timeout=_as_float(data.get("command_timeout")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Unable to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_path(base: Path, value: Any) -> Optional[Path]:
    text = _as_str(value)
    if not text:
        return None
    path = Path(text).expanduser()
    if not path.is_absolute():
        path = base / path
    return path.resolve()


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return default


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


def _as_rules(value: Any) -> List[RuleTemplate]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigurationError("rewrite.extra_rules must be a list of {pattern, replacement} mappings")
    rules: List[RuleTemplate] = []
    for item in value:
        entry = _as_dict(item)
        pattern = _as_str(entry.get("pattern"))
        replacement = _as_str(entry.get("replacement"))
        if not pattern or replacement is None:
            raise ConfigurationError("Each rewrite rule needs a non-empty 'pattern' and a 'replacement'")
        rules.append(RuleTemplate(pattern=pattern, replacement=replacement))
    return rules


__all__ = [
    "BuildConfig",
    "BundlesConfig",
    "CONFIG_FILENAME",
    "ConfigurationError",
    "FAILURE_POLICIES",
    "OptimizerConfig",
    "PHASE_OPTIMIZE",
    "PHASE_PUBLISH",
    "PHASE_REWRITE",
    "PHASE_STAGE",
    "POLICY_CONTINUE",
    "POLICY_STRICT",
    "RewriteConfig",
    "RuleTemplate",
    "SKIPPABLE_PHASES",
    "load_config",
]
