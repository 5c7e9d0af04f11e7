"""Configuration models for HTTP instrumentation and telemetry delivery."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Sequence, Union

PatternLike = Union[str, Pattern[str]]
PatternSetting = Union[PatternLike, Sequence[PatternLike]]
HeaderSetting = Union[bool, PatternSetting]

MATCH_ALL = re.compile(r".*")

# Requests made while acquiring credentials must not be instrumented, or every
# upload would produce more telemetry to upload.
DEFAULT_URLS_TO_EXCLUDE = (
    re.compile(r"cognito\-identity\.([^\.]*\.)?amazonaws\.com"),
    re.compile(r"sts\.([^\.]*\.)?amazonaws\.com"),
)

SYNTHETICS_USER_AGENT_MARKER = "CloudWatchSynthetics"


def compile_patterns(patterns: PatternSetting) -> List[Pattern[str]]:
    """Compile string patterns, leaving pre-compiled ones untouched.

    A single pattern is treated as a one-element list.
    """
    if isinstance(patterns, (str, re.Pattern)):
        patterns = [patterns]
    return [p if isinstance(p, re.Pattern) else re.compile(p) for p in patterns]


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str) -> Optional[List[str]]:
    value = os.getenv(name)
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class HttpPluginConfig:
    """Options shared by the callback and promise interceptors.

    ``add_trace_id_header`` is a boolean, a URL pattern or a list of them; the
    trace header is only written for URLs matching one of the patterns.
    """

    urls_to_include: PatternSetting = field(default_factory=lambda: [MATCH_ALL])
    urls_to_exclude: PatternSetting = field(default_factory=lambda: list(DEFAULT_URLS_TO_EXCLUDE))
    add_trace_id_header: HeaderSetting = False
    record_all_requests: bool = False
    stack_trace_length: int = 200
    logical_service_name: str = "sample.rum.aws.amazon.com"
    base_url: Optional[str] = None
    user_agent: str = ""
    synthetic_user_agent_marker: str = SYNTHETICS_USER_AGENT_MARKER

    def __post_init__(self) -> None:
        self.urls_to_include = compile_patterns(self.urls_to_include)
        self.urls_to_exclude = compile_patterns(self.urls_to_exclude)
        if not isinstance(self.add_trace_id_header, bool):
            self.add_trace_id_header = compile_patterns(self.add_trace_id_header)

    @property
    def is_synthetic_agent(self) -> bool:
        return bool(self.synthetic_user_agent_marker) and self.synthetic_user_agent_marker in self.user_agent

    @classmethod
    def from_env(cls, prefix: str = "HTTP_OBSERVATORY_") -> "HttpPluginConfig":
        """Build a config from environment variables, falling back to defaults.

        List values are comma separated regular expressions.
        """
        kwargs: dict = {}
        include = _env_list(f"{prefix}URLS_TO_INCLUDE")
        if include is not None:
            kwargs["urls_to_include"] = include
        exclude = _env_list(f"{prefix}URLS_TO_EXCLUDE")
        if exclude is not None:
            kwargs["urls_to_exclude"] = exclude
        header = os.getenv(f"{prefix}ADD_TRACE_ID_HEADER")
        if header is not None:
            if header.strip().lower() in {"true", "false", "1", "0", "yes", "no", "on", "off"}:
                kwargs["add_trace_id_header"] = _env_bool(f"{prefix}ADD_TRACE_ID_HEADER", False)
            else:
                kwargs["add_trace_id_header"] = _env_list(f"{prefix}ADD_TRACE_ID_HEADER") or []
        kwargs["record_all_requests"] = _env_bool(f"{prefix}RECORD_ALL_REQUESTS", False)
        stack = os.getenv(f"{prefix}STACK_TRACE_LENGTH")
        if stack is not None:
            kwargs["stack_trace_length"] = int(stack)
        for key in ("logical_service_name", "base_url", "user_agent"):
            value = os.getenv(f"{prefix}{key.upper()}")
            if value is not None:
                kwargs[key] = value
        return cls(**kwargs)


@dataclass
class TelemetryConfig:
    """Feature flags read by interceptors from the event sink."""

    enable_xray: bool = False
    enable_w3c_trace_id: bool = False


@dataclass
class CognitoConfig:
    """Settings for the anonymous identity-pool credential exchange."""

    identity_pool_id: str
    guest_role_arn: str
    application_id: str = "default"
    session_name: str = "cwr"
    max_attempts: int = 2
    retry_delay: float = 0.0
    timeout: float = 10.0

    @property
    def region(self) -> str:
        return self.identity_pool_id.split(":")[0]

    @property
    def credential_storage_key(self) -> str:
        return f"cwr_c_{self.application_id}"
