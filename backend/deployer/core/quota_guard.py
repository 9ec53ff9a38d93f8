"""
Storage quota checks for a deployment batch.

Three caps, checked in order before anything is written: per file, per
deployment and cumulative per user (successful deployments only). The
check is a pure function of its inputs.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from deployer.config.settings import DeployConfig


class QuotaReason(str, Enum):
    FILE_TOO_LARGE = "file_too_large"
    DEPLOYMENT_TOO_LARGE = "deployment_too_large"
    USER_QUOTA_EXCEEDED = "user_quota_exceeded"


@dataclass(frozen=True)
class QuotaLimits:
    max_file_bytes: int = DeployConfig.MAX_FILE_BYTES
    max_deployment_bytes: int = DeployConfig.MAX_DEPLOYMENT_BYTES
    max_user_bytes: int = DeployConfig.MAX_USER_BYTES


@dataclass(frozen=True)
class QuotaViolation:
    """
    First violated cap.

    ``before_bytes``/``after_bytes`` are the user's stored bytes without and
    with this batch.
    """
    reason: QuotaReason
    message: str
    limit_bytes: int
    actual_bytes: int
    before_bytes: int
    after_bytes: int
    path: Optional[str] = None


def format_bytes(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


def check_quota(
    per_file_sizes: Iterable[Tuple[str, int]],
    aggregate_size: int,
    prior_success_bytes: int,
    limits: QuotaLimits = QuotaLimits(),
) -> Optional[QuotaViolation]:
    """
    Check a batch against the quota caps.

    Args:
        per_file_sizes: (relative path, size in bytes) for every file of the batch
        aggregate_size: Total bytes of the batch
        prior_success_bytes: Sum of size_bytes over the user's successful deployments
        limits: Caps to apply

    Returns:
        None when the batch fits, otherwise the first violation.
    """
    after = prior_success_bytes + aggregate_size

    for path, size in per_file_sizes:
        if size > limits.max_file_bytes:
            return QuotaViolation(
                reason=QuotaReason.FILE_TOO_LARGE,
                message=(
                    f"File {path} is {format_bytes(size)}, "
                    f"the per-file limit is {format_bytes(limits.max_file_bytes)}"
                ),
                limit_bytes=limits.max_file_bytes,
                actual_bytes=size,
                before_bytes=prior_success_bytes,
                after_bytes=after,
                path=path,
            )

    if aggregate_size > limits.max_deployment_bytes:
        return QuotaViolation(
            reason=QuotaReason.DEPLOYMENT_TOO_LARGE,
            message=(
                f"Deployment is {format_bytes(aggregate_size)}, "
                f"the per-deployment limit is {format_bytes(limits.max_deployment_bytes)}"
            ),
            limit_bytes=limits.max_deployment_bytes,
            actual_bytes=aggregate_size,
            before_bytes=prior_success_bytes,
            after_bytes=after,
        )

    if after > limits.max_user_bytes:
        return QuotaViolation(
            reason=QuotaReason.USER_QUOTA_EXCEEDED,
            message=(
                f"Storage quota exceeded: using {format_bytes(prior_success_bytes)}, "
                f"this deployment would bring it to {format_bytes(after)} "
                f"of {format_bytes(limits.max_user_bytes)}"
            ),
            limit_bytes=limits.max_user_bytes,
            actual_bytes=after,
            before_bytes=prior_success_bytes,
            after_bytes=after,
        )

    return None
