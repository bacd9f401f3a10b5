"""Invocation of the r.js optimizer for each page target."""

from __future__ import annotations

from typing import List, Sequence

from .config import PHASE_OPTIMIZE, BuildConfig
from .logging import get_logger
from .models import StepResult, TargetDescriptor
from .process import CommandExecutionError, ProcessRunner


class OptimizerInvoker:
    """Builds one optimized bundle per target inside the staging tree."""

    def __init__(self, config: BuildConfig, runner: ProcessRunner, *, verify_output: bool | None = None) -> None:
        self.config = config
        self.runner = runner
        self.verify_output = config.optimizer.verify_output if verify_output is None else verify_output
        self.logger = get_logger("optimizer")

    def command_for(self, target: TargetDescriptor) -> List[str]:
        return [
            self.config.optimizer.executable,
            str(self.config.optimizer_script),
            "-o",
            str(self.config.build_file),
            f"name={target.module_name}",
            f"out={target.staged_output_path}",
            f"baseUrl={self.config.staging_dir}",
        ]

    def optimize_all(self, targets: Sequence[TargetDescriptor]) -> List[StepResult]:
        self.logger.info("Running optimize...")
        return [self.optimize(target) for target in targets]

    def optimize(self, target: TargetDescriptor) -> StepResult:
        # Relative paths inside the build file resolve against its own directory.
        result = self.runner.run(self.command_for(target), cwd=self.config.build_file.parent)
        try:
            result.check()
        except CommandExecutionError as exc:
            return StepResult.failure(PHASE_OPTIMIZE, target.module_name, str(exc), [result])

        if self.verify_output and not _has_content(target):
            message = f"optimizer produced no output at {target.staged_output_path}"
            self.logger.warning("%s", message)
            return StepResult.failure(PHASE_OPTIMIZE, target.module_name, message, [result])
        return StepResult.success(PHASE_OPTIMIZE, target.module_name, [result])


def _has_content(target: TargetDescriptor) -> bool:
    try:
        return target.staged_output_path.stat().st_size > 0
    except OSError:
        return False


__all__ = ["OptimizerInvoker"]
