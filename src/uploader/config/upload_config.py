from __future__ import annotations

import os
import re
from decimal import MAX_EMAX, ROUND_HALF_UP, Decimal, localcontext
from pathlib import Path
from typing import TYPE_CHECKING

from uploader.config.exceptions import MASKED_FIELDS, InvalidConfigValue, MissingConfigValue
from uploader.logging_config import REDACTED, get_logger, with_context

if TYPE_CHECKING:
    from uploader.config.option_sources import OptionSource

logger = get_logger(__name__)

# Merge order matters: earlier options stay applied when a later one is rejected.
OPTION_FIELDS: dict[str, str] = {
    "path": "path",
    "size-threshold": "size_threshold",
    "s3-region": "s3_region",
    "s3-bucket": "s3_bucket",
    "s3-key": "s3_key",
    "s3-secret": "s3_secret",
}

_SIZE_PATTERN = re.compile(r"(?P<value>(?:\d*\.)?\d+)(?P<unit>[kmg]?)b?", re.IGNORECASE | re.ASCII)
_SIZE_MULTIPLIERS = {
    "": 1,
    "k": 1024,
    "m": 1048576,
    "g": 1073741824,
}


def parse_size(raw_expression: str) -> int:
    """
    Convert a size expression such as "512", "1.5m" or "10KB" to a byte count.
    Rounds half away from zero. Raises InvalidConfigValue on anything else.
    """
    match = _SIZE_PATTERN.fullmatch(raw_expression)
    if match is None:
        raise InvalidConfigValue("sizeThreshold", raw_expression)
    multiplier = _SIZE_MULTIPLIERS[match.group("unit").lower()]
    value = match.group("value")
    # exact for any number of digits
    with localcontext() as ctx:
        ctx.prec = len(value) + 12
        ctx.Emax = MAX_EMAX
        return int((Decimal(value) * multiplier).quantize(Decimal(1), rounding=ROUND_HALF_UP))


class UploadConfig:
    """
    Holds the validated settings for an upload run.

    Every field starts unset. Setters validate and store, getters raise
    MissingConfigValue until the field has been set.
    """

    def __init__(self) -> None:
        self._path: str | None = None
        self._size_threshold: int | None = None
        self._s3_region: str | None = None
        self._s3_bucket: str | None = None
        self._s3_key: str | None = None
        self._s3_secret: str | None = None

    def __repr__(self) -> str:
        return f"UploadConfig({self.summary()!r})"

    def _field_value(self, option_name: str) -> str | int | None:
        if option_name not in OPTION_FIELDS:
            raise KeyError(f"Unknown config option: {option_name!r}")
        return getattr(self, "_" + OPTION_FIELDS[option_name])

    def is_set(self, option_name: str) -> bool:
        return self._field_value(option_name) is not None

    def ensure_set(self, option_name: str) -> UploadConfig:
        if not self.is_set(option_name):
            raise MissingConfigValue(option_name)
        return self

    def summary(self) -> dict[str, object]:
        summary: dict[str, object] = {}
        for option_name in OPTION_FIELDS:
            value = self._field_value(option_name)
            if value is None:
                continue
            summary[option_name] = REDACTED if option_name in MASKED_FIELDS else value
        return summary

    def merge_from_input(self, option_source: OptionSource) -> UploadConfig:
        setters = {
            "path": self.set_path,
            "size-threshold": self.set_size_threshold,
            "s3-region": self.set_s3_region,
            "s3-bucket": self.set_s3_bucket,
            "s3-key": self.set_s3_key,
            "s3-secret": self.set_s3_secret,
        }
        log = with_context(logger, option_source=type(option_source).__name__)
        applied: list[str] = []
        skipped: list[str] = []
        for option_name in OPTION_FIELDS:
            value = option_source.get_option(option_name)
            if value == "":
                skipped.append(option_name)
                continue
            try:
                setters[option_name](value)
            except InvalidConfigValue:
                log.warning("Rejected config option: option=%s applied=%s", option_name, applied)
                raise
            applied.append(option_name)
        log.info("Merged config options: applied=%s skipped=%s", applied, skipped)
        return self

    def set_path(self, raw_path: str) -> UploadConfig:
        # "" would resolve to the working directory
        if raw_path == "" or not os.path.isdir(raw_path):
            raise InvalidConfigValue("path", raw_path)
        self._path = str(Path(raw_path).resolve())
        logger.debug("Set config path: raw=%s resolved=%s", raw_path, self._path)
        return self

    def get_path(self) -> str:
        return self.ensure_set("path")._path

    def set_size_threshold(self, raw_expression: str) -> UploadConfig:
        self._size_threshold = parse_size(raw_expression)
        logger.debug("Set config size threshold: raw=%s bytes=%s", raw_expression, self._size_threshold)
        return self

    def get_size_threshold(self) -> int:
        return self.ensure_set("size-threshold")._size_threshold

    def _require_non_empty(self, option_name: str, raw_value: str) -> str:
        if raw_value == "":
            raise InvalidConfigValue(option_name, raw_value)
        return raw_value

    def set_s3_region(self, s3_region: str) -> UploadConfig:
        self._s3_region = self._require_non_empty("s3-region", s3_region)
        logger.debug("Set config s3 region: region=%s", s3_region)
        return self

    def get_s3_region(self) -> str:
        return self.ensure_set("s3-region")._s3_region

    def set_s3_bucket(self, s3_bucket: str) -> UploadConfig:
        self._s3_bucket = self._require_non_empty("s3-bucket", s3_bucket)
        logger.debug("Set config s3 bucket: bucket=%s", s3_bucket)
        return self

    def get_s3_bucket(self) -> str:
        return self.ensure_set("s3-bucket")._s3_bucket

    def set_s3_key(self, s3_key: str) -> UploadConfig:
        self._s3_key = self._require_non_empty("s3-key", s3_key)
        logger.debug("Set config s3 key")
        return self

    def get_s3_key(self) -> str:
        return self.ensure_set("s3-key")._s3_key

    def set_s3_secret(self, s3_secret: str) -> UploadConfig:
        self._s3_secret = self._require_non_empty("s3-secret", s3_secret)
        logger.debug("Set config s3 secret")
        return self

    def get_s3_secret(self) -> str:
        return self.ensure_set("s3-secret")._s3_secret
