from fastapi import HTTPException, status


class UserAlreadyExistsException(HTTPException):
    def __init__(self, field: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"User with this {field} already exists."
        )


class InvalidCredentialsException(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
            headers={"WWW-Authenticate": "Bearer"},
        )


class TokenInvalidException(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


class PinRequiredException(HTTPException):
    def __init__(self, operation: str):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "message": f"Security PIN required for {operation}",
                "errors": {"pin": [f"Security PIN is required for {operation}"]},
            },
        )


class InvalidPinException(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "message": "Invalid security PIN",
                "errors": {"pin": ["The provided PIN is incorrect"]},
            },
        )


# ------------------ Domain errors (mapped to HTTP in endpoints) ------------------ #

class BusinessRuleViolation(Exception): pass
class ForbiddenOperation(Exception): pass
class NotFoundError(Exception): pass
class ConflictError(Exception): pass


class PaymentFailed(Exception):
    def __init__(self, reason: str):
        super().__init__(f"Payment failed: {reason}")
        self.reason = reason


class CheckoutRejected(BusinessRuleViolation):
    """Nothing in the cart could be bought; `errors` explains each item."""
    def __init__(self, message: str, errors: dict):
        super().__init__(message)
        self.errors = errors


class InvalidStatusTransition(BusinessRuleViolation):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Invalid status transition from {current} to {requested}")
        self.current = current
        self.requested = requested


def domain_error_to_http(e: Exception) -> HTTPException:
    """Translate a service-layer exception into the matching HTTP error."""
    if isinstance(e, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, ForbiddenOperation):
        status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(e, ConflictError):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    errors = getattr(e, "errors", None)
    if errors:
        return HTTPException(status_code=status_code, detail={"message": str(e), "errors": errors})
    return HTTPException(status_code=status_code, detail=str(e))


DOMAIN_ERRORS = (BusinessRuleViolation, ForbiddenOperation, NotFoundError, ConflictError, PaymentFailed)
