"""URL validation for pagemark."""

from .url_validator import UrlValidationResult, UrlValidator

__all__ = ["UrlValidator", "UrlValidationResult"]
