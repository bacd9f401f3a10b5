"""Copying optimized artifacts back into the bundle sources."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Sequence

from .config import PHASE_PUBLISH, BuildConfig
from .logging import get_logger
from .models import StepResult, TargetDescriptor, relative_page_dir
from .platform import CopyCommands, copy_commands_for
from .process import CommandResult, ProcessRunner


class ResultPublisher:
    """Puts each target's built JS and rewritten HTML next to its original page."""

    def __init__(
        self,
        config: BuildConfig,
        runner: ProcessRunner,
        copy_commands: CopyCommands | None = None,
    ) -> None:
        self.config = config
        self.runner = runner
        self.copy_commands = copy_commands or copy_commands_for(config.platform)
        self.logger = get_logger("publisher")

    def destination_for(self, target: TargetDescriptor) -> Path:
        return self.config.bundle_web_folder(target.bundle) / relative_page_dir(target.page_dir)

    def publish_all(self, targets: Sequence[TargetDescriptor]) -> List[StepResult]:
        self.logger.info("Copy built files to %s...", self.config.bundles_root)
        return [self.publish(target) for target in targets]

    def publish(self, target: TargetDescriptor) -> StepResult:
        destination = self.destination_for(target)
        commands = self.copy_commands.copy_files(
            [target.staged_output_path, target.staged_html_path], destination
        )
        results = self._run_all(commands)
        failed = [result for result in results if not result.ok]
        if failed:
            detail = "; ".join(
                f"`{result.display()}` exited with {result.returncode}" for result in failed
            )
            return StepResult.failure(PHASE_PUBLISH, target.module_name, detail, results)
        return StepResult.success(PHASE_PUBLISH, target.module_name, results)

    def _run_all(self, commands: Sequence[Sequence[str]]) -> List[CommandResult]:
        cwd = self.config.staging_dir
        if not commands:
            return []
        if len(commands) == 1:
            return [self.runner.run(commands[0], cwd=cwd)]
        # Independent copies; all of them settle before the step completes.
        with ThreadPoolExecutor(max_workers=len(commands)) as pool:
            futures = [pool.submit(self.runner.run, command, cwd=cwd) for command in commands]
            return [future.result() for future in futures]


__all__ = ["ResultPublisher"]
