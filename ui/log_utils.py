"""Shared logging utilities."""

import json
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit
from uuid import uuid4

LOG_ROOT = Path.cwd() / "logs"
CLI_LOG_FILE = LOG_ROOT / "proxy.log"

_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="log-writer")


def write_forward_log(
    method: str,
    url: str,
    headers: dict[str, str],
    *,
    target: str,
    log_root: Path = LOG_ROOT,
) -> Path:
    """Write a single forwarded request log entry."""
    payload = {
        "timestamp": _utc_now(),
        "method": method,
        "target": target,
        "url": url,
        "headers": redact_headers(headers),
    }
    return _write_json(_target_folder(log_root / "forwarded", target), payload)


def submit_forward_log(
    method: str,
    url: str,
    headers: dict[str, str],
    *,
    target: str,
) -> None:
    """Queue a forwarded request log entry on the writer thread."""
    _executor.submit(write_forward_log, method, url, dict(headers), target=target)


def write_cli_log(
    level: str,
    message: str,
    *,
    log_file: Path = CLI_LOG_FILE,
    **extra: Any,
) -> None:
    """Append a line to the rolling CLI log file."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
    extra_str = " ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""
    line = f"[{timestamp}] {level}: {message}"
    if extra_str:
        line += f" {extra_str}"
    line += "\n"
    with log_file.open("a") as f:
        f.write(line)


def submit_cli_log(level: str, message: str, **extra: Any) -> None:
    _executor.submit(write_cli_log, level, message, **extra)


def clear_logs(log_root: Path = LOG_ROOT) -> int:
    """Remove forwarded request logs from a previous run."""
    folder = log_root / "forwarded"
    if not folder.exists():
        return 0

    deleted = 0
    for old_file in folder.rglob("*.json"):
        try:
            old_file.unlink()
            deleted += 1
        except OSError:
            pass
    return deleted


def shutdown_log_executor() -> None:
    """Flush pending log writes."""
    _executor.shutdown(wait=True)


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive headers."""
    redacted = {}
    for key, value in headers.items():
        lowered = key.lower()
        if "key" in lowered or "authorization" in lowered or lowered == "cookie":
            redacted[key] = _mask(value)
        else:
            redacted[key] = value
    return redacted


def _mask(value: str) -> str:
    if len(value) <= 10:
        return "***"
    return value[:6] + "..." + value[-4:]


def _write_json(folder: Path, payload: dict[str, Any]) -> Path:
    """Write payload to a unique JSON file in the given folder."""
    folder.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S.%fZ")
    file_path = folder / f"{timestamp}_{uuid4().hex}.json"
    file_path.write_text(json.dumps(payload, indent=2, default=str))
    return file_path


def _target_folder(base: Path, target: str) -> Path:
    host = urlsplit(target).netloc.replace(":", "_")
    if host:
        return base / host
    return base


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()
