from __future__ import annotations

import argparse
import os
from collections.abc import Mapping
from typing import Any, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

from uploader.config.upload_config import OPTION_FIELDS


class OptionSource(Protocol):
    def get_option(self, name: str) -> str:
        ...


def _check_option_name(name: str) -> str:
    if name not in OPTION_FIELDS:
        raise KeyError(f"Unknown config option: {name!r}")
    return OPTION_FIELDS[name]


# Raw option values as handed over by a caller, empty string meaning "not provided".
class RawUploadOptions(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True)
    path: str = Field("", description="Local directory to upload from.")
    size_threshold: str = Field("", alias="size-threshold", description="Human readable size, e.g. '10MB'.")
    s3_region: str = Field("", alias="s3-region", description="Target S3 region.")
    s3_bucket: str = Field("", alias="s3-bucket", description="Target S3 bucket.")
    s3_key: str = Field("", alias="s3-key", description="S3 access key id.")
    s3_secret: str = Field("", alias="s3-secret", description="S3 secret access key.")

    @field_validator("*", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else str(value)


class MappingOptionSource:
    def __init__(self, values: Mapping[str, Any] | RawUploadOptions):
        if isinstance(values, RawUploadOptions):
            self.options = values
        else:
            self.options = RawUploadOptions.model_validate(dict(values))

    def get_option(self, name: str) -> str:
        return getattr(self.options, _check_option_name(name))


class EnvOptionSource:
    """
    Reads options from environment variables, e.g. "size-threshold" from
    UPLOADER_SIZE_THRESHOLD. Unset variables read as "".
    """

    def __init__(self, prefix: str = "UPLOADER_", environ: Optional[Mapping[str, str]] = None):
        self.prefix = prefix
        self.environ = os.environ if environ is None else environ

    def env_var_name(self, name: str) -> str:
        return self.prefix + _check_option_name(name).upper()

    def get_option(self, name: str) -> str:
        return self.environ.get(self.env_var_name(name), "")


class NamespaceOptionSource:
    def __init__(self, namespace: argparse.Namespace):
        self.namespace = namespace

    def get_option(self, name: str) -> str:
        value = getattr(self.namespace, _check_option_name(name), None)
        return "" if value is None else str(value)
