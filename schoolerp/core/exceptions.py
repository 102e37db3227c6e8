from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PolicyViolation(ServiceError):
    """A written row does not pass any row-level policy check for its table."""

    def __init__(self, table: str) -> None:
        super().__init__(
            f'new row violates row-level security policy for table "{table}"',
            status.HTTP_403_FORBIDDEN,
        )
