#!/usr/bin/env python3
"""
Sonar Quality Gate Check

Polls the Sonar web API for the latest analysis of a project, then for the
quality gate verdict of that analysis, and fails the CI job unless the
verdict is OK.

Usage:
    python -m client.quality_gate
    python -m client.quality_gate --project-key my-project --max-wait 600

Environment Variables:
    SONAR_TOKEN       - User token (required)
    SONAR_HOST_URL    - Sonar server (default: https://sonarcloud.io)
    SONAR_PROJECT_KEY - Project key (default: kitthapat-j_devsecops-fullsolution)

Each variable can also be given as a GitHub Actions input
(INPUT_SONAR_TOKEN, ...); the plain environment variable wins.
"""

import argparse
import enum
import os
import sys
import time
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from client.polling import PRINT_PREFIX, poll_until
from client.sonar_client import SonarAuthError, SonarClient

# Configuration
DEFAULT_HOST_URL = "https://sonarcloud.io"
DEFAULT_PROJECT_KEY = "kitthapat-j_devsecops-fullsolution"
MAX_WAIT_TIME_SECONDS = 300
POLLING_INTERVAL_SECONDS = 5
PASSED_STATUS = "OK"


class FailureReason(enum.Enum):
    MISSING_CREDENTIAL = "missing_credential"
    AUTHENTICATION_FAILED = "authentication_failed"
    ANALYSIS_NOT_FOUND = "analysis_not_found"
    VERDICT_UNAVAILABLE = "verdict_unavailable"
    GATE_FAILED = "gate_failed"


@dataclass(frozen=True)
class GateConfig:
    token: Optional[str]
    host_url: str = DEFAULT_HOST_URL
    project_key: str = DEFAULT_PROJECT_KEY
    max_wait_seconds: int = MAX_WAIT_TIME_SECONDS
    polling_interval_seconds: int = POLLING_INTERVAL_SECONDS
    request_timeout: Optional[float] = None

    def __post_init__(self):
        if self.polling_interval_seconds <= 0:
            raise ValueError(f"polling_interval_seconds must be positive, got {self.polling_interval_seconds}")


@dataclass(frozen=True)
class GateResult:
    passed: bool
    message: str
    reason: Optional[FailureReason] = None
    analysis_key: Optional[str] = None
    status: Optional[str] = None


def _lookup(environ: Mapping[str, str], name: str) -> Optional[str]:
    """Environment variable first, then the GitHub Actions input of the same name."""
    return environ.get(name) or environ.get(f"INPUT_{name}") or None


def load_config(environ: Optional[Mapping[str, str]] = None, **overrides) -> GateConfig:
    """
    Build a GateConfig from the environment.

    Args:
        environ: Variables to read (defaults to os.environ)
        overrides: GateConfig fields to set explicitly; None values are ignored
    """
    if environ is None:
        environ = os.environ

    values = {
        "token": _lookup(environ, "SONAR_TOKEN"),
        "host_url": _lookup(environ, "SONAR_HOST_URL") or DEFAULT_HOST_URL,
        "project_key": _lookup(environ, "SONAR_PROJECT_KEY") or DEFAULT_PROJECT_KEY,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return GateConfig(**values)


def _fail(reason: FailureReason, message: str, **details) -> GateResult:
    print(f"::error::{message}", flush=True)
    return GateResult(passed=False, message=message, reason=reason, **details)


def run(
    config: GateConfig,
    client: Optional[SonarClient] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> GateResult:
    """
    Check the quality gate of the latest analysis of ``config.project_key``.

    Args:
        config: Connection and timing settings
        client: Sonar client to use; built from ``config`` when omitted
        sleep: Sleep function between attempts (replaced in tests)

    Returns:
        GateResult; ``passed`` is True only when the server reported OK
    """
    if not config.token:
        return _fail(FailureReason.MISSING_CREDENTIAL, "SONAR_TOKEN is missing from environment variables.")

    if client is None:
        client = SonarClient(config.host_url, config.token, timeout=config.request_timeout)

    print(f"{PRINT_PREFIX} Starting check for Sonar Quality Gate on project: {config.project_key}", flush=True)
    print(f"{PRINT_PREFIX} Host URL: {config.host_url}", flush=True)

    timing = {
        "budget": config.max_wait_seconds,
        "interval": config.polling_interval_seconds,
        "sleep": sleep,
    }

    try:
        analysis_key = poll_until(
            lambda: client.latest_analysis_key(config.project_key),
            describe="fetch of latest analysis",
            **timing,
        )
        if analysis_key is None:
            return _fail(
                FailureReason.ANALYSIS_NOT_FOUND,
                "Could not find any recent Sonar analysis key after maximum wait time.",
            )
        print(f"{PRINT_PREFIX} Found latest analysis key: {analysis_key}", flush=True)

        status = poll_until(
            lambda: client.project_status(analysis_key),
            describe=f"Quality Gate check for analysis ID {analysis_key}",
            **timing,
        )
    except SonarAuthError as e:
        return _fail(
            FailureReason.AUTHENTICATION_FAILED,
            f"Sonar rejected the token ({e}). Check SONAR_TOKEN and its permissions.",
        )

    if status is None:
        return _fail(
            FailureReason.VERDICT_UNAVAILABLE,
            "Sonar Quality Gate status not available after maximum wait time.",
            analysis_key=analysis_key,
        )

    print(f"{PRINT_PREFIX} Sonar Quality Gate Status: {status}", flush=True)
    if status != PASSED_STATUS:
        return _fail(
            FailureReason.GATE_FAILED,
            f"Sonar Quality Gate FAILED with status: {status}",
            analysis_key=analysis_key,
            status=status,
        )

    message = "Sonar Quality Gate PASSED."
    print(f"{PRINT_PREFIX} ✓ {message}", flush=True)
    return GateResult(passed=True, message=message, analysis_key=analysis_key, status=status)


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Fail the build unless the Sonar Quality Gate passes.")
    parser.add_argument("--project-key", help="Sonar project key (overrides SONAR_PROJECT_KEY)")
    parser.add_argument(
        "--max-wait",
        type=int,
        dest="max_wait_seconds",
        help=f"Seconds to wait in each polling phase (default: {MAX_WAIT_TIME_SECONDS})",
    )
    parser.add_argument(
        "--interval",
        type=_positive_int,
        dest="polling_interval_seconds",
        help=f"Seconds between attempts (default: {POLLING_INTERVAL_SECONDS})",
    )
    parser.add_argument(
        "--request-timeout",
        type=float,
        help="Timeout for each HTTP request in seconds (default: none)",
    )
    args = parser.parse_args(argv)

    config = load_config(**vars(args))
    result = run(config)
    return 0 if result.passed else 1


if __name__ == "__main__":
    sys.exit(main())
