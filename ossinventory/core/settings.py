"""Configuration: environment-wide settings and per-job overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal
from urllib.parse import urlparse

import structlog

log = structlog.get_logger("ossinventory.config")

CheckPoliciesMode = Literal["disable", "enableNew", "enableAll"]
JobCheckPolicies = Literal["global", "disable", "enableNew", "enableAll"]
JobForceUpdate = Literal["global", "forceUpdate", "noForceUpdate"]

DEFAULT_SERVICE_URL = "https://saas.whitesourcesoftware.com/agent"
DEFAULT_TIMEOUT = 60
DEFAULT_RETRIES = 1
DEFAULT_RETRY_INTERVAL = 30

_GLOBAL = "global"
_ENABLE_NEW = "enableNew"
_ENABLE_ALL = "enableAll"
_FORCE_UPDATE = "forceUpdate"
_AGENT_KEYWORD = "agent"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _env_bool(key: str, default: bool = False) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _parse_int(raw: str | int | None, default: int, *, minimum: int, name: str) -> int:
    """Parse a numeric setting, falling back to *default* when missing or out of range."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        log.warning("config.invalid_number", setting=name, value=raw, default=default)
        return default
    if value < minimum:
        log.warning("config.out_of_range", setting=name, value=value, default=default)
        return default
    return value


def normalize_service_url(url: str | None) -> str:
    """Make sure the service URL points at the agent endpoint."""
    if _is_blank(url):
        return DEFAULT_SERVICE_URL
    url = url.strip()  # type: ignore[union-attr]
    if not url.rstrip("/").endswith(_AGENT_KEYWORD):
        if not url.endswith("/"):
            url += "/"
        url += _AGENT_KEYWORD
    return url


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry: ``max_retries + 1`` attempts with a fixed pause in between."""

    max_retries: int = DEFAULT_RETRIES
    retry_interval_seconds: float = DEFAULT_RETRY_INTERVAL

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.retry_interval_seconds < 0:
            raise ValueError("retry_interval_seconds must be >= 0")

    @property
    def total_attempts(self) -> int:
        return self.max_retries + 1


@dataclass(frozen=True)
class ProxySettings:
    host: str
    port: int = 0
    username: str | None = None
    password: str | None = None

    @property
    def url(self) -> str:
        """Proxy URL for httpx; any protocol given with the host is dropped."""
        host = self.host.strip()
        parsed = urlparse(host)
        if parsed.scheme and parsed.hostname:
            host = parsed.hostname
        auth = ""
        if self.username:
            auth = self.username
            if self.password:
                auth += f":{self.password}"
            auth += "@"
        port = f":{self.port}" if self.port > 0 else ""
        return f"http://{auth}{host}{port}"


@dataclass(frozen=True)
class GlobalConfig:
    """Installation-wide settings shared by every job."""

    service_url: str | None = None
    api_token: str | None = None
    user_key: str | None = None
    check_policies: CheckPoliciesMode = "disable"
    global_force_update: bool = False
    fail_on_error: bool = False
    proxy: ProxySettings | None = None
    connection_timeout: int = DEFAULT_TIMEOUT
    connection_retries: int = DEFAULT_RETRIES
    connection_retries_interval: int = DEFAULT_RETRY_INTERVAL

    @classmethod
    def from_env(cls) -> GlobalConfig:
        """Build the global config from ``OSSINV_*`` environment variables."""
        proxy = None
        proxy_host = os.environ.get("OSSINV_PROXY_HOST")
        if not _is_blank(proxy_host):
            proxy = ProxySettings(
                host=proxy_host,  # type: ignore[arg-type]
                port=_parse_int(
                    os.environ.get("OSSINV_PROXY_PORT"), 0, minimum=0, name="proxy_port"
                ),
                username=os.environ.get("OSSINV_PROXY_USER") or None,
                password=os.environ.get("OSSINV_PROXY_PASSWORD") or None,
            )

        check_policies = os.environ.get("OSSINV_CHECK_POLICIES", "disable")
        if check_policies not in ("disable", _ENABLE_NEW, _ENABLE_ALL):
            log.warning("config.invalid_check_policies", value=check_policies)
            check_policies = "disable"

        return cls(
            service_url=os.environ.get("OSSINV_SERVICE_URL"),
            api_token=os.environ.get("OSSINV_API_TOKEN"),
            user_key=os.environ.get("OSSINV_USER_KEY"),
            check_policies=check_policies,  # type: ignore[arg-type]
            global_force_update=_env_bool("OSSINV_FORCE_UPDATE"),
            fail_on_error=_env_bool("OSSINV_FAIL_ON_ERROR"),
            proxy=proxy,
            connection_timeout=_parse_int(
                os.environ.get("OSSINV_CONNECTION_TIMEOUT"),
                DEFAULT_TIMEOUT,
                minimum=1,
                name="connection_timeout",
            ),
            connection_retries=_parse_int(
                os.environ.get("OSSINV_CONNECTION_RETRIES"),
                DEFAULT_RETRIES,
                minimum=0,
                name="connection_retries",
            ),
            connection_retries_interval=_parse_int(
                os.environ.get("OSSINV_CONNECTION_RETRIES_INTERVAL"),
                DEFAULT_RETRY_INTERVAL,
                minimum=0,
                name="connection_retries_interval",
            ),
        )


@dataclass(frozen=True)
class JobConfig:
    """Per-job settings; blank values inherit from :class:`GlobalConfig`."""

    api_token: str | None = None
    user_key: str | None = None
    check_policies: JobCheckPolicies = "global"
    force_update: JobForceUpdate = "global"
    product: str | None = None
    product_version: str | None = None
    requester_email: str | None = None
    project_token: str | None = None
    lib_includes: str | None = None
    lib_excludes: str | None = None
    maven_project_token: str | None = None
    module_tokens: str | None = None
    modules_to_include: str | None = None
    modules_to_exclude: str | None = None
    ignore_pom_modules: bool = False


@dataclass(frozen=True)
class SyncSettings:
    """Settings resolved once per invocation and handed to the sync runner."""

    api_token: str | None
    user_key: str | None
    service_url: str
    check_policies: bool
    check_all_libraries: bool
    force_update: bool
    fail_on_error: bool
    connection_timeout: int
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    proxy: ProxySettings | None = None
    requester_email: str | None = None
    product: str | None = None
    product_version: str | None = None

    @property
    def has_api_token(self) -> bool:
        return not _is_blank(self.api_token)

    @classmethod
    def resolve(cls, global_config: GlobalConfig, job: JobConfig) -> SyncSettings:
        api_token = job.api_token if not _is_blank(job.api_token) else global_config.api_token
        user_key = job.user_key if not _is_blank(job.user_key) else global_config.user_key

        if _is_blank(job.check_policies) or job.check_policies == _GLOBAL:
            mode: str = global_config.check_policies
        else:
            mode = job.check_policies

        if _is_blank(job.force_update) or job.force_update == _GLOBAL:
            force_update = global_config.global_force_update
        else:
            force_update = job.force_update == _FORCE_UPDATE

        return cls(
            api_token=api_token,
            user_key=user_key,
            service_url=normalize_service_url(global_config.service_url),
            check_policies=mode in (_ENABLE_NEW, _ENABLE_ALL),
            check_all_libraries=mode == _ENABLE_ALL,
            force_update=force_update,
            fail_on_error=global_config.fail_on_error,
            connection_timeout=global_config.connection_timeout,
            retry_policy=RetryPolicy(
                max_retries=global_config.connection_retries,
                retry_interval_seconds=global_config.connection_retries_interval,
            ),
            proxy=global_config.proxy,
            requester_email=job.requester_email,
            product=job.product,
            product_version=job.product_version,
        )
