from fastapi import HTTPException, status
from typing import Optional, Dict, Any

class BaseAPIException(HTTPException):
    """Base exception for API errors"""
    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}

        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error": {
                    "code": error_code,
                    "message": message,
                    "details": self.details
                }
            }
        )

    def __str__(self) -> str:  # Ensure str(e) returns the human message
        return self.message

class InvalidInputError(BaseAPIException):
    """Invalid input / business rule violations"""
    def __init__(
        self,
        message: str = "Invalid input",
        details: Optional[Dict] = None,
        error_code: str = "INVALID_INPUT_001",
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=error_code,
            message=message,
            details=details
        )

class DuplicateRequestError(InvalidInputError):
    """Idempotency key already processed"""
    def __init__(self, message: str = "Request already processed", details: Optional[Dict] = None):
        super().__init__(message=message, details=details, error_code="DUPLICATE_001")

class InsufficientBalanceError(InvalidInputError):
    """Insufficient balance errors"""
    def __init__(self, message: str = "Insufficient balance", details: Optional[Dict] = None):
        super().__init__(message=message, details=details, error_code="BALANCE_001")

class PossessionLimitExceededError(InvalidInputError):
    """Wallet possession limit exceeded"""
    def __init__(self, message: str = "Possession limit exceeded", details: Optional[Dict] = None):
        super().__init__(message=message, details=details, error_code="BALANCE_002")

class RefundLimitExceededError(InvalidInputError):
    """Cancel amount exceeds the refundable amount of the original use"""
    def __init__(self, message: str = "Refund limit exceeded", details: Optional[Dict] = None):
        super().__init__(message=message, details=details, error_code="REFUND_001")

class AccessDeniedError(BaseAPIException):
    """Ownership / admin key failures"""
    def __init__(self, message: str = "Access denied", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="ACCESS_DENIED_001",
            message=message,
            details=details
        )

class NotFoundError(BaseAPIException):
    """Resource not found errors"""
    def __init__(
        self,
        message: str = "Resource not found",
        details: Optional[Dict] = None,
        error_code: str = "NOT_FOUND_001",
    ):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code=error_code,
            message=message,
            details=details
        )

class PolicyNotFoundError(NotFoundError):
    """Active point policy missing"""
    def __init__(self, message: str = "Point policy not found", details: Optional[Dict] = None):
        super().__init__(message=message, details=details, error_code="POLICY_001")

class InternalServerError(BaseAPIException):
    """Internal server errors"""
    def __init__(self, message: str = "Internal server error", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="INTERNAL_001",
            message=message,
            details=details
        )
