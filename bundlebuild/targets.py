"""Loading optimize targets from the build's target document."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, List, Optional

from .models import TargetDescriptor

DEFAULT_TARGET_GROUP = "requirejs"


class ConfigurationError(RuntimeError):
    """Raised when build configuration or the target document is unusable."""


def load_targets(
    path: Path,
    *,
    staging_dir: Path,
    target_group: str = DEFAULT_TARGET_GROUP,
) -> List[TargetDescriptor]:
    """Read ``path`` and return its optimize targets in document order."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Unable to read target document {path}: {exc}") from exc
    return parse_targets(text, staging_dir=staging_dir, target_group=target_group, source=path.name)


def parse_targets(
    xml_text: str,
    *,
    staging_dir: Path,
    target_group: str = DEFAULT_TARGET_GROUP,
    source: str = "target document",
) -> List[TargetDescriptor]:
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise ConfigurationError(f"Failed to parse {source}: {exc}") from exc

    group = _find_target_group(root, target_group)
    if group is None:
        raise ConfigurationError(
            f'Couldn\'t find a <target name="{target_group}"> element in {source}'
        )

    targets: List[TargetDescriptor] = []
    for element in group.iter():
        if element is group or _local_name(element.tag) != "optimize":
            continue
        # Missing attributes stay empty; callers decide whether that is fatal.
        targets.append(
            TargetDescriptor.create(
                page_dir=element.get("pageDir", ""),
                name=element.get("name", ""),
                bundle=element.get("bundle", ""),
                staging_dir=staging_dir,
            )
        )
    return targets


def derive_bundles(targets: Iterable[TargetDescriptor]) -> List[str]:
    """Return each referenced bundle once, in first-seen order."""
    return list(dict.fromkeys(target.bundle for target in targets))


def _find_target_group(root: ET.Element, target_group: str) -> Optional[ET.Element]:
    for element in root.iter():
        if _local_name(element.tag) == "target" and element.get("name") == target_group:
            return element
    return None


def _local_name(tag: object) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


__all__ = [
    "ConfigurationError",
    "DEFAULT_TARGET_GROUP",
    "derive_bundles",
    "load_targets",
    "parse_targets",
]
