"""Result type for expected outcomes at service boundaries.

ServiceResult carries either a success payload or a failure message with
an optional underlying exception. It models outcomes the caller must branch
on ("taxonomy merge failed", "transcripts disabled"). A missing record is a
success with ``data=None``, not a failure.

Unexpected exceptions are never wrapped implicitly; they propagate.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ResultAccessError(RuntimeError):
    """Raised when a ServiceResult is read from the wrong side.

    Reading the payload of a failure, or the error of a success, is a
    programming error rather than a domain outcome.
    """


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Outcome of a service call.

    Attributes:
        is_success: Sole discriminator between success and failure
        data: Payload on success (may legitimately be None)
        error_message: Human-readable reason on failure
        exception: Underlying cause on failure, if any
    """

    is_success: bool
    data: Optional[T] = None
    error_message: Optional[str] = None
    exception: Optional[BaseException] = None

    @classmethod
    def success(cls, data: Optional[T] = None) -> "ServiceResult[T]":
        """Create a successful result."""
        return cls(is_success=True, data=data)

    @classmethod
    def failure(
        cls, error_message: str, exception: Optional[BaseException] = None
    ) -> "ServiceResult[T]":
        """Create a failed result."""
        return cls(is_success=False, error_message=error_message, exception=exception)

    def unwrap(self) -> Optional[T]:
        """Return the success payload.

        Raises:
            ResultAccessError: If this is a failure
        """
        if not self.is_success:
            raise ResultAccessError(
                f"Cannot read data from a failed result: {self.error_message}"
            )
        return self.data

    @property
    def value(self) -> Optional[T]:
        """Success payload; same as unwrap()."""
        return self.unwrap()

    @property
    def error(self) -> str:
        """Failure message.

        Raises:
            ResultAccessError: If this is a success
        """
        if self.is_success:
            raise ResultAccessError("Cannot read error from a successful result")
        return self.error_message or ""
