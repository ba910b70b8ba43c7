from __future__ import annotations

MASKED_FIELDS = {"s3-key", "s3-secret"}


class ConfigError(ValueError):
    pass


class MissingConfigValue(ConfigError):
    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Missing config value: {field_name}")


class InvalidConfigValue(ConfigError):
    def __init__(self, field_name: str, raw_value: str):
        self.field_name = field_name
        self.raw_value = raw_value
        shown = "***" if field_name in MASKED_FIELDS else repr(raw_value)
        super().__init__(f"Invalid config value for {field_name}: {shown}")
