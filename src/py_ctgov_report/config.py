# Copyright 2025 Gowtham Rao <rao@ohdsi.org>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Manages the application's configuration using Pydantic."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Tuning knobs for outcome clustering.

    Reads settings from environment variables with the prefix 'CTGOV_'.
    A settings instance is frozen; build a new one to change a value.
    """

    model_config = SettingsConfigDict(env_prefix="CTGOV_", frozen=True)

    # Title similarity, as a percentage of matched characters
    similarity_threshold: float = Field(default=75, ge=0, le=100)

    # Parity filters applied before two outcomes are grouped by title
    units_parity_required: bool = True
    groups_parity_required: bool = True
    classes_parity_required: bool = True

    # Number of shared measurement classes needed to group two outcomes
    common_class_usage_threshold: int = Field(default=2, ge=1)

    # Dump the full outcome model before rendering
    debug: bool = False


def load_config(config_file: str | Path | None) -> dict[str, Any]:
    """Loads configuration values from a YAML file.

    Raises:
        ConfigurationError: If the file is not valid YAML or its top level is
            not a mapping of setting names to values.
    """
    if not config_file:
        return {}
    try:
        with open(config_file, "r") as f:
            values = yaml.safe_load(f)
    except FileNotFoundError:
        logger.warning("Config file not found: %s", config_file)
        return {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config file {config_file} is not valid YAML: {e}") from e

    if values is None:
        return {}
    if not isinstance(values, dict) or not all(isinstance(key, str) for key in values):
        raise ConfigurationError(
            f"Config file {config_file} must map setting names to values, "
            f"not {type(values).__name__}."
        )
    return values


def build_settings(
    config_file: str | Path | None = None, **overrides: Any,
) -> Settings:
    """Combine a YAML file and explicit overrides into a Settings instance.

    Overrides set to None are ignored, so unset CLI options fall through to the
    file, then the environment, then the defaults.
    """
    values = load_config(config_file)
    values.update({key: value for key, value in overrides.items() if value is not None})
    return Settings(**values)
