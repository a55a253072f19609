"""
api package

HTTP clients for the annotation persistence service and the auth service.
"""

from api.client import AnnotationApi, ApiError, AuthApi, Session

__all__ = ["AnnotationApi", "ApiError", "AuthApi", "Session"]
