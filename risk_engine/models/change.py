"""Change request schema: the files a Pull Request touches and its deployment context."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Environment(str, Enum):
    """Deployment target."""

    DEV = "DEV"
    STAGING = "STAGING"
    PRODUCTION = "PRODUCTION"

    @property
    def is_critical(self) -> bool:
        return self is Environment.PRODUCTION


class ChangeType(str, Enum):
    """Declared nature of the change."""

    FEATURE = "FEATURE"
    HOTFIX = "HOTFIX"
    REFACTOR = "REFACTOR"
    CONFIG = "CONFIG"

    @property
    def is_urgent(self) -> bool:
        return self is ChangeType.HOTFIX


class ChangedFile(BaseModel):
    """A single file touched by the change."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Repository-relative file path.")
    lines_changed: int = Field(default=0, ge=0, description="Lines added plus lines removed.")
    has_test: bool | None = Field(
        default=None,
        description="Whether the file has an associated test.  ``None`` means infer it from paths.",
    )


class ChangeRequest(BaseModel):
    """Already-validated input to an evaluation.

    ``policy_version`` is free text on purpose: unknown versions fall back
    to the default policy instead of failing validation.
    """

    model_config = ConfigDict(frozen=True)

    changed_files: tuple[ChangedFile, ...] = Field(..., description="Files touched by the change.")
    environment: Environment
    change_type: ChangeType
    policy_version: str | None = Field(default=None, description="Scoring policy version, e.g. 'v1' or 'v2'.")
    pull_request_id: str | None = Field(default=None, description="Caller's PR identifier, for logging only.")

    @field_validator("changed_files")
    @classmethod
    def require_files(cls, v: tuple[ChangedFile, ...]) -> tuple[ChangedFile, ...]:
        if not v:
            raise ValueError("changed_files must contain at least one file")
        return v

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.changed_files]


class ScenarioVariation(BaseModel):
    """A hypothetical override of a change request.

    Any field left empty keeps the value of the base request.
    """

    model_config = ConfigDict(frozen=True)

    description: str = Field(default="", description="Why this alternative might reduce risk.")
    override_environment: Environment | None = None
    override_change_type: ChangeType | None = None
    exclude_files: tuple[str, ...] = Field(default=(), description="Paths removed from the change set.")

    @property
    def is_noop(self) -> bool:
        return self.override_environment is None and self.override_change_type is None and not self.exclude_files
