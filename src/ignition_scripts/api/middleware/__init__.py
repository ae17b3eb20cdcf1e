# src/ignition_scripts/api/middleware/__init__.py
from .error_handler import ErrorHandlingMiddleware, ValidationErrorHandler, scripts_error_response

__all__ = ['ErrorHandlingMiddleware', 'ValidationErrorHandler', 'scripts_error_response']
