"""Phase sequencing for a bundle build run."""

from __future__ import annotations

from typing import Callable, List, Sequence, Tuple

from .config import (
    PHASE_OPTIMIZE,
    PHASE_PUBLISH,
    PHASE_REWRITE,
    PHASE_STAGE,
    BuildConfig,
)
from .logging import get_logger
from .models import PhaseReport, PipelineReport, StepResult, TargetDescriptor
from .optimizer import OptimizerInvoker
from .platform import CopyCommands, copy_commands_for
from .process import DryRunRunner, ProcessRunner
from .publisher import ResultPublisher
from .rewrite import HtmlRewriter
from .staging import StagingDirectoryError, StagingManager
from .targets import ConfigurationError, derive_bundles, load_targets

PHASE_PREPARE = "prepare"
_BANNER = "-" * 55


class BuildPipeline:
    """Runs stage, optimize, rewrite and publish in order, one full phase at a time."""

    def __init__(
        self,
        config: BuildConfig,
        runner: ProcessRunner | None = None,
        copy_commands: CopyCommands | None = None,
        *,
        dry_run: bool = False,
    ) -> None:
        self.config = config
        self.dry_run = dry_run
        if runner is None:
            runner = DryRunRunner() if dry_run else ProcessRunner(timeout=config.command_timeout)
        self.runner = runner
        copy_commands = copy_commands or copy_commands_for(config.platform)
        self.staging = StagingManager(config, runner, copy_commands)
        self.optimizer = OptimizerInvoker(
            config, runner, verify_output=False if dry_run else None
        )
        self.rewriter = HtmlRewriter(config, dry_run=dry_run)
        self.publisher = ResultPublisher(config, runner, copy_commands)
        self.logger = get_logger("pipeline")

    def load_targets(self) -> List[TargetDescriptor]:
        targets = load_targets(
            self.config.targets_file,
            staging_dir=self.config.staging_dir,
            target_group=self.config.target_group,
        )
        incomplete = [target for target in targets if not (target.page_dir and target.name and target.bundle)]
        for target in incomplete:
            self.logger.warning(
                "Optimize entry is missing attributes (pageDir=%r, name=%r, bundle=%r)",
                target.page_dir,
                target.name,
                target.bundle,
            )
        if incomplete and self.config.strict:
            raise ConfigurationError(
                f"{len(incomplete)} optimize entr{'y is' if len(incomplete) == 1 else 'ies are'} "
                f"missing pageDir, name or bundle in {self.config.targets_file.name}"
            )
        return targets

    def run(self) -> PipelineReport:
        """Execute every phase; raises ConfigurationError before any phase when targets cannot load."""
        targets = self.load_targets()
        bundles = derive_bundles(targets)
        self.logger.info(
            "Loaded %d target(s) across %d bundle(s) from %s",
            len(targets),
            len(bundles),
            self.config.targets_file,
        )
        report = PipelineReport(targets=list(targets), bundles=bundles)

        prepare = self._prepare()
        report.phases.append(prepare)
        if prepare.failures and self.config.strict:
            report.aborted_after = PHASE_PREPARE
            return report

        for name, step in self._phases(targets, bundles):
            if name in self.config.skip:
                self.logger.info("Skipping %s phase", name)
                report.phases.append(PhaseReport(name=name, skipped=True))
                continue
            self.logger.info("%s", _BANNER)
            phase = PhaseReport(name=name, results=step())
            report.phases.append(phase)
            if phase.failures:
                self.logger.warning(
                    "%s phase finished with %d failure(s)", name, len(phase.failures)
                )
                if self.config.strict:
                    self.logger.error("Stopping after %s phase (failure_policy=strict)", name)
                    report.aborted_after = name
                    break
        return report

    def _prepare(self) -> PhaseReport:
        phase = PhaseReport(name=PHASE_PREPARE)
        staging_dir = str(self.config.staging_dir)
        if self.dry_run:
            self.logger.info("Would ensure staging directory %s", staging_dir)
            return phase
        try:
            self.staging.ensure_staging_directory()
        except StagingDirectoryError as exc:
            self.logger.error("%s", exc)
            phase.results.append(StepResult.failure(PHASE_PREPARE, staging_dir, str(exc)))
        else:
            phase.results.append(StepResult.success(PHASE_PREPARE, staging_dir))
        return phase

    def _phases(
        self, targets: Sequence[TargetDescriptor], bundles: Sequence[str]
    ) -> List[Tuple[str, Callable[[], List[StepResult]]]]:
        return [
            (PHASE_STAGE, lambda: self.staging.stage_bundles(bundles)),
            (PHASE_OPTIMIZE, lambda: self.optimizer.optimize_all(targets)),
            (PHASE_REWRITE, lambda: self.rewriter.rewrite_all(targets)),
            (PHASE_PUBLISH, lambda: self.publisher.publish_all(targets)),
        ]


__all__ = ["BuildPipeline", "PHASE_PREPARE"]
