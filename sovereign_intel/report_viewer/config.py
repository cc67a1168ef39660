from __future__ import annotations

import os
from dataclasses import dataclass


OUTPUT_FORMATS = ("markdown", "docx")
FORMAT_ALIASES = {"md": "markdown"}


def _env(name: str, default: str = "") -> str:
    value = os.environ.get(name, "").strip()
    # an unfilled "NAME=" line copied from an env template counts as unset
    if value.strip("'\"").strip().upper() == f"{name.upper()}=":
        value = ""
    return value or default.strip()


def _env_int(name: str, default: int, *, minimum: int) -> int:
    raw = _env(name)
    return max(minimum, int(raw) if raw else default)


def _env_float(name: str, default: float, *, minimum: float) -> float:
    raw = _env(name)
    return max(minimum, float(raw) if raw else default)


def _env_formats(name: str) -> tuple[str, ...]:
    """Known output formats listed in ``name``, deduplicated; the defaults when none are known."""
    formats: list[str] = []
    for part in _env(name).split(","):
        value = part.strip().lower()
        value = FORMAT_ALIASES.get(value, value)
        if value in OUTPUT_FORMATS and value not in formats:
            formats.append(value)
    return tuple(formats) or OUTPUT_FORMATS


@dataclass(frozen=True)
class ViewerConfig:
    report_base_url: str
    reports_dir: str
    http_timeout_sec: int
    http_retry_attempts: int
    http_retry_backoff_sec: float
    output_dir: str
    output_formats: tuple[str, ...]
    log_level: str

    @classmethod
    def from_env(cls) -> "ViewerConfig":
        return cls(
            report_base_url=_env("REPORT_BASE_URL").rstrip("/"),
            reports_dir=_env("REPORTS_DIR", "reports"),
            http_timeout_sec=_env_int("REPORT_HTTP_TIMEOUT_SEC", 15, minimum=1),
            http_retry_attempts=_env_int("REPORT_HTTP_RETRY_ATTEMPTS", 3, minimum=1),
            http_retry_backoff_sec=_env_float("REPORT_HTTP_RETRY_BACKOFF_SEC", 1.2, minimum=0.0),
            output_dir=_env("OUTPUT_DIR", "Intel Reports"),
            output_formats=_env_formats("REPORT_OUTPUT_FORMATS"),
            log_level=_env("LOG_LEVEL", "WARNING").upper(),
        )

    @property
    def http_source_enabled(self) -> bool:
        return bool(self.report_base_url)
