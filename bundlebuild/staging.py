"""Staging directory preparation."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from .config import PHASE_STAGE, BuildConfig
from .logging import get_logger
from .models import StepResult
from .platform import CopyCommands, copy_commands_for
from .process import CommandExecutionError, ProcessRunner


class StagingDirectoryError(RuntimeError):
    """Raised when the staging directory cannot be created."""


class StagingManager:
    """Merges every bundle's web folder into one staging tree.

    Bundle sources are laid out per bundle, while module ids resolve against a
    single web root, so the optimizer only works against the merged copy.
    """

    def __init__(
        self,
        config: BuildConfig,
        runner: ProcessRunner,
        copy_commands: CopyCommands | None = None,
    ) -> None:
        self.config = config
        self.runner = runner
        self.copy_commands = copy_commands or copy_commands_for(config.platform)
        self.logger = get_logger("staging")

    @property
    def staging_dir(self) -> Path:
        return self.config.staging_dir

    def ensure_staging_directory(self) -> Path:
        """Create the staging directory; an existing directory is left untouched."""
        path = self.staging_dir
        try:
            path.mkdir(parents=True)
        except FileExistsError as exc:
            if not path.is_dir():
                raise StagingDirectoryError(
                    f"Staging path {path} exists but is not a directory"
                ) from exc
            self.logger.debug("Staging directory %s already exists", path)
        except OSError as exc:
            raise StagingDirectoryError(f"Unable to create staging directory {path}: {exc}") from exc
        else:
            self.logger.debug("Created staging directory %s", path)
        return path

    def stage_bundles(self, bundles: Sequence[str]) -> List[StepResult]:
        self.logger.info("Copying bundle web content to %s...", self.staging_dir)
        return [self.stage_bundle(bundle) for bundle in bundles]

    def stage_bundle(self, bundle: str) -> StepResult:
        source = self.config.bundle_web_folder(bundle)
        command = self.copy_commands.copy_tree(source, self.staging_dir)
        result = self.runner.run(command, cwd=self.staging_dir)
        try:
            result.check()
        except CommandExecutionError as exc:
            return StepResult.failure(PHASE_STAGE, bundle, str(exc), [result])
        return StepResult.success(PHASE_STAGE, bundle, [result])


__all__ = ["StagingDirectoryError", "StagingManager"]
