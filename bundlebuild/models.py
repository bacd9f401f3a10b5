"""Core data models shared across bundlebuild components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .process import CommandResult


@dataclass(frozen=True)
class TargetDescriptor:
    """One page module to optimize, plus the staged paths derived from it."""

    page_dir: str
    name: str
    bundle: str
    staged_page_dir: Path
    staged_output_path: Path
    staged_html_path: Path

    @classmethod
    def create(cls, page_dir: str, name: str, bundle: str, staging_dir: Path) -> "TargetDescriptor":
        page_dir = relative_page_dir(page_dir)
        staged_page_dir = staging_dir / page_dir
        return cls(
            page_dir=page_dir,
            name=name,
            bundle=bundle,
            staged_page_dir=staged_page_dir,
            staged_output_path=staged_page_dir / f"built-{name}.js",
            staged_html_path=staged_page_dir / f"{name}.html",
        )

    @property
    def module_name(self) -> str:
        """Logical module id handed to the optimizer."""
        return f"{self.page_dir}/{self.name}"



def relative_page_dir(page_dir: str) -> str:
    """Drop leading separators so the page folder always joins under its parent."""
    return page_dir.lstrip("/\\")

@dataclass
class StepResult:
    """Outcome of one per-bundle or per-target step within a phase."""

    phase: str
    subject: str
    ok: bool
    error: Optional[str] = None
    commands: List[CommandResult] = field(default_factory=list)

    @classmethod
    def success(cls, phase: str, subject: str, commands: Sequence[CommandResult] = ()) -> "StepResult":
        return cls(phase=phase, subject=subject, ok=True, commands=list(commands))

    @classmethod
    def failure(
        cls,
        phase: str,
        subject: str,
        error: str,
        commands: Sequence[CommandResult] = (),
    ) -> "StepResult":
        return cls(phase=phase, subject=subject, ok=False, error=error, commands=list(commands))


@dataclass
class PhaseReport:
    """All step results for a single pipeline phase."""

    name: str
    results: List[StepResult] = field(default_factory=list)
    skipped: bool = False

    @property
    def failures(self) -> List[StepResult]:
        return [result for result in self.results if not result.ok]


@dataclass
class PipelineReport:
    """Summary of a full pipeline run."""

    targets: List[TargetDescriptor] = field(default_factory=list)
    bundles: List[str] = field(default_factory=list)
    phases: List[PhaseReport] = field(default_factory=list)
    aborted_after: Optional[str] = None

    @property
    def failures(self) -> List[StepResult]:
        collected: List[StepResult] = []
        for phase in self.phases:
            collected.extend(phase.failures)
        return collected

    @property
    def succeeded(self) -> bool:
        return self.aborted_after is None and not self.failures

    def phase(self, name: str) -> Optional[PhaseReport]:
        for report in self.phases:
            if report.name == name:
                return report
        return None


__all__ = [
    "CommandResult",
    "PhaseReport",
    "PipelineReport",
    "StepResult",
    "TargetDescriptor",
    "relative_page_dir",
]
