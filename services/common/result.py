"""
Result Pattern Implementation
Standard return type for service operations that can fail at the boundary
"""

from typing import TypeVar, Generic, Optional, Any, Dict
from dataclasses import dataclass

T = TypeVar('T')


class ErrorCode:
    """Codes carried by failure results; routes map them to HTTP statuses"""
    NOT_FOUND = 'NOT_FOUND'
    VALIDATION_ERROR = 'VALIDATION_ERROR'
    INVALID_COLUMNS = 'INVALID_COLUMNS'
    STORE_UNAVAILABLE = 'STORE_UNAVAILABLE'


@dataclass
class Result(Generic[T]):
    """
    Either a successful result with data or a failure with error information.

    Examples:
        result = Result.success({'delivered': 3})
        if result.is_success:
            print(result.data)

        result = Result.failure("Document store unavailable", code=ErrorCode.STORE_UNAVAILABLE)
        if result.is_failure:
            print(result.error)
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def success(cls, data: T, metadata: Optional[Dict[str, Any]] = None) -> 'Result[T]':
        """Create a successful result."""
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def failure(cls,
                error: str,
                code: Optional[str] = None,
                metadata: Optional[Dict[str, Any]] = None) -> 'Result[T]':
        """
        Create a failure result.

        Args:
            error: Error message describing the failure
            code: Optional error code for programmatic handling
            metadata: Optional metadata about the failure
        """
        return cls(success=False, error=error, error_code=code, metadata=metadata)

    @property
    def is_success(self) -> bool:
        return self.success

    @property
    def is_failure(self) -> bool:
        return not self.success

    def unwrap(self) -> T:
        """
        Get the data from a successful result.

        Raises:
            ValueError: If called on a failure result
        """
        if self.is_failure:
            raise ValueError(f"Cannot unwrap a failure result: {self.error}")
        return self.data

    def unwrap_or(self, default: T) -> T:
        return self.data if self.is_success else default

    def __bool__(self) -> bool:
        return self.is_success

    def __repr__(self) -> str:
        if self.is_success:
            return f"Result.success(data={self.data!r})"
        return f"Result.failure(error={self.error!r}, code={self.error_code!r})"
