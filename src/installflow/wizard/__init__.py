"""Install workflow orchestration."""

from installflow.wizard.backend import (
    InstallBackend,
    LoginStatus,
    PresetSummary,
    PreservedSaveDataStatus,
    Release,
    SaveDataPreview,
    SettingsUpdate,
)
from installflow.wizard.controller import InstallWizard
from installflow.wizard.messages import MessageCatalog
from installflow.wizard.password import ArchivePasswordValidator, is_wrong_password_error
from installflow.wizard.pipeline import ImportPipeline, PipelineResult
from installflow.wizard.platforms import Platform, PlatformCandidate
from installflow.wizard.progress import ProgressAggregator, ProgressEvent
from installflow.wizard.retry import StageOutcome, StageStatus, run_with_retry_prompt
from installflow.wizard.session import InstallSession, PasswordValidationState
from installflow.wizard.stages import ImportStageDef, StagePlan, load_stage_plan
from installflow.wizard.steps import Direction, WizardStep
from installflow.wizard.tickets import RequestGuard
from installflow.wizard.transition import StepTransition, TransitionFrame

__all__ = [
    "ArchivePasswordValidator",
    "Direction",
    "ImportPipeline",
    "ImportStageDef",
    "InstallBackend",
    "InstallSession",
    "InstallWizard",
    "LoginStatus",
    "MessageCatalog",
    "PasswordValidationState",
    "PipelineResult",
    "Platform",
    "PlatformCandidate",
    "PresetSummary",
    "PreservedSaveDataStatus",
    "ProgressAggregator",
    "ProgressEvent",
    "Release",
    "RequestGuard",
    "SaveDataPreview",
    "SettingsUpdate",
    "StageOutcome",
    "StagePlan",
    "StageStatus",
    "StepTransition",
    "TransitionFrame",
    "WizardStep",
    "is_wrong_password_error",
    "load_stage_plan",
    "run_with_retry_prompt",
]
