from fastapi import status


# =========================
# Gateway errors
# =========================
class GatewayError(Exception):
    """Base error; every subclass knows the HTTP status it maps to."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(GatewayError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class DatabaseNotConfigured(ConfigurationError):
    def __init__(self):
        super().__init__("No database binding found")


class AuthorizationError(GatewayError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self):
        super().__init__("Unauthorized")


class ClientRequestError(GatewayError):
    status_code = status.HTTP_400_BAD_REQUEST


class MethodNotAllowed(GatewayError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED

    def __init__(self):
        super().__init__("Method not allowed")


class ExecutionError(GatewayError):
    """The database rejected the statement; message is the engine's own text."""

    status_code = status.HTTP_400_BAD_REQUEST
