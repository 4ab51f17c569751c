"""Detect the host's PHP version and classify its support status."""

from __future__ import annotations

import logging
import os
import re
import subprocess
from dataclasses import dataclass
from datetime import date
from typing import Optional

from php_notifier.domain.enums import PhpSupportStatus
from php_notifier.schemas import PhpStatus


logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^\s*(\d+)\.(\d+)(?:\.(\d+))?")


@dataclass(frozen=True)
class PhpBranch:
    branch: str
    active_support_until: date
    security_support_until: date


# Release branches with their end of active and security support.
PHP_BRANCHES: dict[tuple[int, int], PhpBranch] = {
    (7, 4): PhpBranch("7.4", date(2021, 11, 28), date(2022, 11, 28)),
    (8, 0): PhpBranch("8.0", date(2022, 11, 26), date(2023, 11, 26)),
    (8, 1): PhpBranch("8.1", date(2023, 11, 25), date(2025, 12, 31)),
    (8, 2): PhpBranch("8.2", date(2024, 12, 31), date(2026, 12, 31)),
    (8, 3): PhpBranch("8.3", date(2025, 12, 31), date(2027, 12, 31)),
    (8, 4): PhpBranch("8.4", date(2026, 12, 31), date(2028, 12, 31)),
    (8, 5): PhpBranch("8.5", date(2027, 12, 31), date(2029, 12, 31)),
}


def detect_php_version() -> Optional[str]:
    """Return the PHP version string of the host, or None if PHP is not available.

    `PHP_NOTIFIER_PHP_VERSION` overrides detection; otherwise the `PHP_BINARY`
    executable (default `php`) is asked for its version.
    """
    override = os.getenv("PHP_NOTIFIER_PHP_VERSION", "").strip()
    if override:
        return override

    binary = os.getenv("PHP_BINARY", "php")
    try:
        proc = subprocess.run(
            [binary, "-r", "echo PHP_VERSION;"],
            capture_output=True,
            text=True,
            timeout=10,
            check=True,
        )
    except FileNotFoundError:
        logger.warning("PHP binary not found: %s", binary)
        return None
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as exc:
        logger.warning("PHP version probe failed | binary=%s error=%s", binary, exc)
        return None

    version = proc.stdout.strip()
    return version or None


def classify(version: Optional[str], today: Optional[date] = None) -> PhpStatus:
    """Classify a PHP version against the known release branches."""
    today = today or date.today()
    match = _VERSION_RE.match(version or "")
    if match is None:
        return PhpStatus(
            version=version,
            status=PhpSupportStatus.UNKNOWN,
            message="The PHP version running on this server could not be determined.",
        )

    key = (int(match.group(1)), int(match.group(2)))
    branch_name = f"{key[0]}.{key[1]}"
    info = PHP_BRANCHES.get(key)

    if info is None:
        if key > max(PHP_BRANCHES):
            return PhpStatus(
                version=version,
                branch=branch_name,
                status=PhpSupportStatus.SUPPORTED,
                message=f"PHP {version} is newer than any known release branch.",
            )
        return PhpStatus(
            version=version,
            branch=branch_name,
            status=PhpSupportStatus.END_OF_LIFE,
            message=f"PHP {version} is no longer supported. Please upgrade as soon as possible.",
        )

    if today <= info.active_support_until:
        status = PhpSupportStatus.SUPPORTED
        message = f"PHP {version} is actively supported until {info.active_support_until.isoformat()}."
    elif today <= info.security_support_until:
        status = PhpSupportStatus.SECURITY
        message = (
            f"PHP {version} only receives security fixes until "
            f"{info.security_support_until.isoformat()}. Plan an upgrade."
        )
    else:
        status = PhpSupportStatus.END_OF_LIFE
        message = (
            f"PHP {version} reached end of life on {info.security_support_until.isoformat()}. "
            "Please upgrade as soon as possible."
        )

    return PhpStatus(
        version=version,
        branch=info.branch,
        status=status,
        active_support_until=info.active_support_until,
        security_support_until=info.security_support_until,
        message=message,
    )


def current_status(today: Optional[date] = None) -> PhpStatus:
    return classify(detect_php_version(), today=today)
