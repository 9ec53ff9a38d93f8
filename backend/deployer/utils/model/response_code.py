"""
Response Status Codes

Status codes used in the response envelope; they mirror the HTTP status.
"""


class ResponseCode:
    """Standard response status codes"""

    SUCCESS = 200
    CREATED = 201

    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    PAYLOAD_TOO_LARGE = 413
    UNPROCESSABLE_ENTITY = 422

    INTERNAL_SERVER_ERROR = 500
    GATEWAY_TIMEOUT = 504

    @classmethod
    def get_message(cls, code: int) -> str:
        """Get default message for status code"""
        messages = {
            cls.SUCCESS: "Success",
            cls.CREATED: "Created successfully",
            cls.BAD_REQUEST: "Bad request",
            cls.UNAUTHORIZED: "Unauthorized",
            cls.FORBIDDEN: "Forbidden",
            cls.NOT_FOUND: "Resource not found",
            cls.CONFLICT: "Resource conflict",
            cls.PAYLOAD_TOO_LARGE: "Storage quota exceeded",
            cls.UNPROCESSABLE_ENTITY: "Validation failed",
            cls.INTERNAL_SERVER_ERROR: "Internal server error",
            cls.GATEWAY_TIMEOUT: "Operation timed out",
        }
        return messages.get(code, "Unknown error")
