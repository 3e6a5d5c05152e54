"""
Domain errors raised by the crud and service layers.

Each carries the HTTP status it maps to; main.py turns them into
``{"detail": message}`` responses, the same body HTTPException produces.
"""


class BookstoreError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(BookstoreError):
    status_code = 404


class Conflict(BookstoreError):
    status_code = 400


class InsufficientStock(BookstoreError):
    status_code = 400

    def __init__(self, title: str):
        super().__init__(f"Insufficient stock for book: {title}")
        self.title = title


class AccessDenied(BookstoreError):
    status_code = 403


class InvalidCredentials(BookstoreError):
    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class ValidationError(BookstoreError):
    status_code = 400
