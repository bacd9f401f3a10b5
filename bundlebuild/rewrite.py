"""HTML entry point rewriting for optimized pages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from .config import PHASE_REWRITE, BuildConfig, RuleTemplate
from .logging import get_logger
from .models import StepResult, TargetDescriptor

LOADER_SCRIPT = "requirejs/require.js"
MINIFIED_LOADER_SCRIPT = "requirejs/require.min.js"


class HtmlRewriteError(RuntimeError):
    """Raised when a staged HTML file cannot be read or written."""


@dataclass(frozen=True)
class RewriteRule:
    """Literal substitution applied to the first occurrence of ``pattern``."""

    pattern: str
    replacement: str

    def apply(self, text: str) -> str:
        return text.replace(self.pattern, self.replacement, 1)


def default_rules(name: str) -> List[RewriteRule]:
    """Point the page bootstrap at ``built-<name>.js`` and load the minified require.js."""
    built = f'require(["built-{name}.js"]);'
    return [
        RewriteRule(pattern=f"require(['{name}.js']);", replacement=built),
        RewriteRule(pattern=f'require(["{name}.js"]);', replacement=built),
        RewriteRule(pattern=LOADER_SCRIPT, replacement=MINIFIED_LOADER_SCRIPT),
    ]


def expand_rules(templates: Sequence[RuleTemplate], name: str) -> List[RewriteRule]:
    return [
        RewriteRule(
            pattern=template.pattern.replace("{name}", name),
            replacement=template.replacement.replace("{name}", name),
        )
        for template in templates
    ]


def apply_rules(text: str, rules: Sequence[RewriteRule]) -> str:
    for rule in rules:
        text = rule.apply(text)
    return text


class HtmlRewriter:
    """Rewrites each target's staged HTML in place."""

    def __init__(self, config: BuildConfig, *, dry_run: bool = False) -> None:
        self.config = config
        self.dry_run = dry_run
        self.logger = get_logger("rewrite")

    def rules_for(self, target: TargetDescriptor) -> List[RewriteRule]:
        return default_rules(target.name) + expand_rules(self.config.rewrite.extra_rules, target.name)

    def rewrite_all(self, targets: Sequence[TargetDescriptor]) -> List[StepResult]:
        self.logger.info("Running updateHTML...")
        return [self.rewrite(target) for target in targets]

    def rewrite(self, target: TargetDescriptor) -> StepResult:
        try:
            self._rewrite_file(target)
        except HtmlRewriteError as exc:
            self.logger.warning("%s", exc)
            return StepResult.failure(PHASE_REWRITE, target.module_name, str(exc))
        return StepResult.success(PHASE_REWRITE, target.module_name)

    def _rewrite_file(self, target: TargetDescriptor) -> None:
        path = target.staged_html_path
        self.logger.info("updateHTML %s", path)
        try:
            with path.open(encoding="utf-8", newline="") as handle:
                original = handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise HtmlRewriteError(f"Unable to read {path}: {exc}") from exc

        updated = apply_rules(original, self.rules_for(target))
        if updated == original:
            self.logger.debug("No rewrite rules matched in %s", path)
            return
        if self.dry_run:
            return
        try:
            with path.open("w", encoding="utf-8", newline="") as handle:
                handle.write(updated)
        except OSError as exc:
            raise HtmlRewriteError(f"Unable to write {path}: {exc}") from exc


__all__ = [
    "HtmlRewriteError",
    "HtmlRewriter",
    "LOADER_SCRIPT",
    "MINIFIED_LOADER_SCRIPT",
    "RewriteRule",
    "apply_rules",
    "default_rules",
    "expand_rules",
]
