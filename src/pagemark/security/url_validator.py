"""URL validation performed before any network call."""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from urllib.parse import urlparse

from ..errors import InputError


@dataclass
class UrlValidationResult:
    """Result of URL validation."""

    is_valid: bool
    rejection_reason: str | None = None

    @staticmethod
    def valid() -> UrlValidationResult:
        """Create a valid result."""
        return UrlValidationResult(is_valid=True)

    @staticmethod
    def invalid(reason: str) -> UrlValidationResult:
        """Create an invalid result with reason."""
        return UrlValidationResult(is_valid=False, rejection_reason=reason)


class UrlValidator:
    """
    Validates URLs before they are fetched.

    Only http and https URLs with a host are accepted. When
    ``block_private_ips`` is enabled, localhost, internal domain suffixes
    and private/loopback/link-local/reserved IP literals are rejected too,
    which guards a server deployment against SSRF.

    Example:
        validator = UrlValidator(block_private_ips=True)
        result = validator.validate("https://example.com/page")
        if not result.is_valid:
            print(f"Rejected: {result.rejection_reason}")
    """

    DEFAULT_ALLOWED_SCHEMES = frozenset({"http", "https"})
    INTERNAL_SUFFIXES = (".internal", ".local", ".localhost", ".localdomain")
    LOCALHOST_NAMES = frozenset({"localhost", "localhost.localdomain"})

    def __init__(
        self,
        allowed_schemes: frozenset[str] | set[str] | None = None,
        block_private_ips: bool = False,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the URL validator.

        Args:
            allowed_schemes: Allowed URL schemes (default: http and https)
            block_private_ips: Whether to block localhost and private addresses
            logger: Optional logger for validation messages
        """
        self.allowed_schemes = frozenset(allowed_schemes or self.DEFAULT_ALLOWED_SCHEMES)
        self.block_private_ips = block_private_ips
        self.logger = logger or logging.getLogger(__name__)

    def validate(self, url: str) -> UrlValidationResult:
        """
        Validate a URL.

        Args:
            url: The URL to validate

        Returns:
            UrlValidationResult with is_valid and optional rejection_reason
        """
        if not isinstance(url, str) or not url.strip():
            return UrlValidationResult.invalid("URL is required")

        try:
            parsed = urlparse(url.strip())
            hostname = parsed.hostname
        except ValueError:
            return UrlValidationResult.invalid("Invalid URL format")

        scheme = parsed.scheme.lower()
        if scheme not in self.allowed_schemes:
            allowed = ", ".join(sorted(self.allowed_schemes))
            return UrlValidationResult.invalid(f"Scheme '{scheme or '(none)'}' not allowed (allowed: {allowed})")

        if not hostname:
            return UrlValidationResult.invalid("URL has no domain")

        if self.block_private_ips:
            if hostname in self.LOCALHOST_NAMES:
                return UrlValidationResult.invalid("Localhost URLs not allowed")

            for suffix in self.INTERNAL_SUFFIXES:
                if hostname.endswith(suffix):
                    return UrlValidationResult.invalid(f"Internal domain suffix '{suffix}' not allowed")

            ip_result = self._check_ip_address(hostname)
            if ip_result is not None:
                return ip_result

        return UrlValidationResult.valid()

    def _check_ip_address(self, hostname: str) -> UrlValidationResult | None:
        """
        Check if hostname is a private/internal IP address.

        Returns:
            UrlValidationResult if IP is blocked, None if hostname is not a blocked IP
        """
        try:
            ip = ipaddress.ip_address(hostname)
        except ValueError:
            # Not an IP literal
            return None

        if ip.is_loopback:
            return UrlValidationResult.invalid(f"Loopback IP address '{hostname}' not allowed")
        if ip.is_private:
            return UrlValidationResult.invalid(f"Private IP address '{hostname}' not allowed")
        if ip.is_link_local:
            return UrlValidationResult.invalid(f"Link-local IP address '{hostname}' not allowed")
        if ip.is_reserved:
            return UrlValidationResult.invalid(f"Reserved IP address '{hostname}' not allowed")
        return None

    def is_valid(self, url: str) -> bool:
        """Quick check if URL is valid."""
        return self.validate(url).is_valid

    def require_valid(self, url: str) -> str:
        """
        Validate a URL, raising on rejection.

        Returns:
            The stripped URL

        Raises:
            InputError: If the URL is rejected
        """
        result = self.validate(url)
        if not result.is_valid:
            self.logger.debug(f"Rejected URL {url!r}: {result.rejection_reason}")
            raise InputError(result.rejection_reason or "Invalid URL")
        return url.strip()
