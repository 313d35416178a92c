"""
Error taxonomy for schema validation, identity-store writes and canaries.
"""
from typing import Any, List, Optional, Sequence


class AuthorizerError(Exception):
    """Base error for the authorizer deployment core."""


class InvalidArgument(AuthorizerError):
    """Caller supplied an unusable argument."""


# ========= Schema / asset loading =========

class SchemaIOError(AuthorizerError):
    """Schema, policy or canary file could not be read."""


class UnsupportedFormat(AuthorizerError):
    """File extension is not one of the supported formats."""


class SchemaParseError(AuthorizerError):
    """File content is not valid YAML/JSON."""


class SchemaStructureError(AuthorizerError):
    """Schema document does not have the single-namespace shape."""


class MissingPrincipalType(SchemaStructureError):
    def __init__(self, namespace: str, missing: Sequence[str]):
        self.namespace = namespace
        self.missing = list(missing)
        super().__init__(
            f"schema namespace {namespace!r} missing required principal entity types: {', '.join(self.missing)}"
        )


class SizeLimitExceeded(AuthorizerError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"schema JSON size {size} exceeds {limit:,} byte limit")


class ActionGroupViolation(AuthorizerError):
    def __init__(self, violations: Sequence[str], catalog: Sequence[str]):
        self.violations = list(violations)
        self.catalog = tuple(catalog)
        super().__init__(
            f"actions not aligned to canonical action groups [{', '.join(self.catalog)}]: {', '.join(self.violations)}"
        )


# ========= Remote store failures =========

class StoreError(AuthorizerError):
    """Classified failure from a remote AWS call."""
    label = "store error"

    def __init__(self, cause: BaseException, code: Optional[str] = None):
        self.cause = cause
        self.code = code
        super().__init__(f"{self.label}: {cause}")


class ConflictError(StoreError):
    """Uniqueness / conditional conflict; re-read state before retrying."""
    label = "conflict"


class RetryableError(StoreError):
    """Throttled or contended; retry with backoff."""
    label = "retryable"


class OpError(StoreError):
    """Any other failure; fatal for the caller."""
    label = "op error"


# ========= Canaries =========

class CanaryError(AuthorizerError):
    """Base for canary failures."""


class CanaryExecutionError(CanaryError):
    """A canary case could not be evaluated."""

    def __init__(self, index: int, cause: BaseException):
        self.index = index
        self.cause = cause
        super().__init__(f"#{index}: API error: {cause}")


class CanaryMismatch(CanaryError):
    """Decision returned by the policy store differs from the expectation."""

    def __init__(self, index: int, expected: str, actual: str, case: Any):
        self.index = index
        self.expected = expected
        self.actual = actual
        self.case = case
        super().__init__(f"#{index}: expected {expected}, got {actual} ({case.describe()})")


class CanaryFailure(CanaryError):
    """Aggregate of every failing canary in a run."""

    def __init__(self, failures: List[CanaryError], total: int):
        self.failures = list(failures)
        self.total = total
        detail = "; ".join(str(f) for f in self.failures)
        super().__init__(f"canaries failed ({len(self.failures)}/{total}): {detail}")
