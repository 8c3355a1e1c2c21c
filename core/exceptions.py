"""
Custom exceptions for RunMemories
Provides structured error handling across all domains
"""
from typing import Any, Dict, Optional


class RunMemoriesError(Exception):
    """Base exception for all RunMemories errors"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses"""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(RunMemoriesError):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: Optional[str] = None, **details):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details={"field": field, **details} if field else details,
            status_code=400,
        )


class NotFoundError(RunMemoriesError):
    """Raised when a resource is not found"""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            error_code="NOT_FOUND",
            details={"resource": resource, "identifier": str(identifier)},
            status_code=404,
        )


class WebhookSignatureError(RunMemoriesError):
    """Raised when a webhook payload cannot be authenticated"""

    def __init__(self, message: str):
        super().__init__(
            message=f"Webhook Error: {message}",
            error_code="WEBHOOK_SIGNATURE_ERROR",
            status_code=400,
        )


class ExternalAPIError(RunMemoriesError):
    """Raised when an external API call fails"""

    def __init__(
        self,
        provider: str,
        message: str,
        api_status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        **details,
    ):
        super().__init__(
            message=message,
            error_code="EXTERNAL_API_ERROR",
            details={
                "provider": provider,
                "api_status_code": api_status_code,
                "response_body": response_body,
                **details,
            },
            status_code=500,
        )
        self.provider = provider


class PaymentProviderError(ExternalAPIError):
    """Raised when the payment provider rejects or fails a request"""

    def __init__(self, message: str, stripe_error_code: Optional[str] = None, **details):
        super().__init__(
            provider="stripe",
            message=message,
            stripe_error_code=stripe_error_code,
            **details,
        )
        self.error_code = "PAYMENT_PROVIDER_ERROR"


class EmailDeliveryError(ExternalAPIError):
    """Raised when email delivery fails"""

    def __init__(
        self,
        message: str,
        email: Optional[str] = None,
        api_status_code: Optional[int] = None,
        **details,
    ):
        super().__init__(
            provider="sendgrid",
            message=message,
            api_status_code=api_status_code,
            email=email,
            **details,
        )
        self.error_code = "EMAIL_DELIVERY_ERROR"


class PaymentRequiredError(RunMemoriesError):
    """Raised when a checkout session has not been paid"""

    def __init__(self, session_id: str, payment_status: Optional[str] = None):
        super().__init__(
            message="Payment not completed or still pending.",
            error_code="PAYMENT_REQUIRED",
            details={"session_id": session_id, "payment_status": payment_status},
            status_code=402,
        )


class ConfigurationError(RunMemoriesError):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details={"setting": setting} if setting else {},
            status_code=500,
        )


class StorageError(RunMemoriesError):
    """Raised when reading or writing stored artifacts fails"""

    def __init__(self, message: str, path: Optional[str] = None, **details):
        super().__init__(
            message=message,
            error_code="STORAGE_ERROR",
            details={"path": path, **details} if path else details,
            status_code=500,
        )


class PreviewGenerationError(RunMemoriesError):
    """Raised when a preview image cannot be produced"""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="PREVIEW_GENERATION_ERROR",
            details={"source": source} if source else {},
            status_code=500,
        )
