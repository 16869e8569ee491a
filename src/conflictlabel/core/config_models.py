"""
Action inputs.

GitHub Actions exposes each `with:` input as an `INPUT_<NAME>` environment
variable (name upper-cased, spaces replaced by underscores). Everything is
read once at startup and validated here.
"""
from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

from conflictlabel.core.errors import ConfigError


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_RETRY_AFTER = 120  # seconds
DEFAULT_RETRY_MAX = 5

TRUE_VALUES = ("true", "True", "TRUE")
FALSE_VALUES = ("false", "False", "FALSE")


def _input_env_name(name: str) -> str:
    return "INPUT_" + name.replace(" ", "_").upper()


def read_input(name: str, environ: Mapping[str, str], required: bool = False) -> str:
    """Read a single action input, trimmed. Missing inputs are empty strings."""
    value = environ.get(_input_env_name(name), "").strip()
    if required and not value:
        raise ConfigError(f"Input required and not supplied: {name}")
    return value


def parse_boolean(name: str, raw: str, default: bool) -> bool:
    """Booleans follow the YAML 1.2 core schema, like `core.getBooleanInput`."""
    if raw == "":
        return default
    if raw in TRUE_VALUES:
        return True
    if raw in FALSE_VALUES:
        return False
    raise ConfigError(
        f'Input does not meet YAML 1.2 "Core Schema" specification: {name}\n'
        f"Support boolean input list: `true | True | TRUE | false | False | FALSE`"
    )


class ActionInputs(BaseModel):
    """Validated configuration for one run."""
    repo_token: str = Field(min_length=1)
    dirty_label: str = Field(min_length=1)
    remove_on_dirty_label: str = ""
    retry_after: int = Field(default=DEFAULT_RETRY_AFTER, ge=0)
    retry_max: int = Field(default=DEFAULT_RETRY_MAX, ge=0)
    comment_on_dirty: str = ""
    comment_on_clean: str = ""
    skip_draft: bool = False
    remove_dirty_comment: bool = False
    continue_on_missing_permissions: bool = False

    @field_validator("retry_after", "retry_max", mode="before")
    @classmethod
    def blank_means_default(cls, value: object, info: ValidationInfo) -> object:
        if value is None or (isinstance(value, str) and value.strip() == ""):
            return cls.model_fields[info.field_name].default
        return value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ActionInputs":
        """
        Build inputs from the environment.

        `repoToken` falls back to `GITHUB_TOKEN` so local runs only need a .env
        file with a token.
        """
        env = os.environ if environ is None else environ

        repo_token = read_input("repoToken", env) or env.get("GITHUB_TOKEN", "").strip()
        if not repo_token:
            raise ConfigError("Input required and not supplied: repoToken")

        try:
            return cls(
                repo_token=repo_token,
                dirty_label=read_input("dirtyLabel", env, required=True),
                remove_on_dirty_label=read_input("removeOnDirtyLabel", env),
                retry_after=read_input("retryAfter", env),
                retry_max=read_input("retryMax", env),
                comment_on_dirty=read_input("commentOnDirty", env),
                comment_on_clean=read_input("commentOnClean", env),
                skip_draft=parse_boolean("skipDraft", read_input("skipDraft", env), False),
                remove_dirty_comment=parse_boolean(
                    "removeDirtyComment", read_input("removeDirtyComment", env), False
                ),
                continue_on_missing_permissions=parse_boolean(
                    "continueOnMissingPermissions",
                    read_input("continueOnMissingPermissions", env),
                    False,
                ),
            )
        except ValidationError as validation_error:
            raise ConfigError(f"Invalid action inputs: {validation_error}") from validation_error
