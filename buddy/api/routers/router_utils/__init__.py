"""Router helper utilities."""

from .error_handling import exception_to_http, handle_api_errors, provider_error_detail

__all__ = ["exception_to_http", "handle_api_errors", "provider_error_detail"]
