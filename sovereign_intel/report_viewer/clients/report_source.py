from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any
from urllib.parse import quote

import requests


logger = logging.getLogger(__name__)

REPORT_FILE_NAME = "data.json"
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class ReportSourceError(RuntimeError):
    """Report could not be retrieved for a reason with no more specific class."""


class ReportNotFoundError(ReportSourceError):
    def __init__(self, report_id: str) -> None:
        super().__init__(f"Report not found: {report_id}")
        self.report_id = report_id


class ReportTransportError(ReportSourceError):
    def __init__(self, status_code: int, url: str = "") -> None:
        super().__init__(f"GET {url or 'report'} failed with HTTP {status_code}")
        self.status_code = status_code
        self.url = url


class ReportPayloadError(ReportSourceError):
    """The source answered, but the body is not a JSON report object."""


def _decode_document(raw: str | bytes, origin: str) -> dict[str, Any]:
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ReportPayloadError(f"Malformed JSON in {origin}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ReportPayloadError(
            f"Expected a JSON object in {origin}, got {type(payload).__name__}."
        )
    return payload


class HttpReportSource:
    """Fetches ``<base_url>/<report_id>/data.json`` over HTTP."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_sec: int = 15,
        retry_attempts: int = 3,
        retry_backoff_sec: float = 1.2,
    ) -> None:
        self.base_url = base_url.strip().rstrip("/")
        self.timeout_sec = max(1, int(timeout_sec))
        self._http_retry_attempts = max(1, int(retry_attempts))
        self._http_retry_backoff_sec = max(0.0, float(retry_backoff_sec))

    def report_url(self, report_id: str) -> str:
        return f"{self.base_url}/{quote(report_id.strip(), safe='')}/{REPORT_FILE_NAME}"

    def _http_get(self, url: str) -> requests.Response:
        last_error: Exception | None = None
        for attempt in range(1, self._http_retry_attempts + 1):
            try:
                response = requests.get(
                    url,
                    headers={"Accept": "application/json"},
                    timeout=self.timeout_sec,
                )
            except requests.RequestException as exc:
                last_error = exc
                if attempt >= self._http_retry_attempts:
                    break
                logger.info("GET %s failed (%s), retrying (%s/%s)", url, exc, attempt, self._http_retry_attempts)
                time.sleep(self._http_retry_backoff_sec * attempt)
                continue

            status_code = int(response.status_code)
            if status_code in RETRYABLE_STATUS_CODES and attempt < self._http_retry_attempts:
                logger.info("GET %s returned HTTP %s, retrying (%s/%s)", url, status_code, attempt, self._http_retry_attempts)
                time.sleep(self._http_retry_backoff_sec * attempt)
                continue
            return response
        raise ReportSourceError(f"GET failed for {url}: {last_error}") from last_error

    def fetch(self, report_id: str) -> dict[str, Any]:
        url = self.report_url(report_id)
        response = self._http_get(url)
        if response.status_code == 404:
            raise ReportNotFoundError(report_id)
        if not response.ok:
            raise ReportTransportError(response.status_code, url)
        return _decode_document(response.content, url)


class DirectoryReportSource:
    """Reads ``<root>/<report_id>/data.json`` from a local reports directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def report_path(self, report_id: str) -> Path | None:
        name = report_id.strip()
        if not name or name in {".", ".."} or "/" in name or "\\" in name:
            return None
        return self.root / name / REPORT_FILE_NAME

    def fetch(self, report_id: str) -> dict[str, Any]:
        path = self.report_path(report_id)
        if path is None or not path.is_file():
            raise ReportNotFoundError(report_id)
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise ReportSourceError(f"Cannot read {path}: {exc}") from exc
        return _decode_document(raw, str(path))
