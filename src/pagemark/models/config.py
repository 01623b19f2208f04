"""Pydantic configuration and request models for pagemark."""

from pathlib import Path
from typing import Any, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..errors import InputError

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; pagemark/1.0; +https://github.com/pagemark/pagemark)"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_CONTENT_SIZE = 10 * 1024 * 1024  # 10 MB
SUPPORTED_SCHEMES = ("http", "https")


class ByteSize(int):
    """
    Custom type that parses human-readable byte sizes.

    Accepts:
        - Integers (bytes)
        - Strings like '200kb', '1mb', '5gb'

    Examples:
        >>> ByteSize._parse('200kb')
        204800
        >>> ByteSize._parse('1mb')
        1048576
        >>> ByteSize._parse(1024)
        1024
    """

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> Any:
        from pydantic_core import core_schema

        return core_schema.no_info_plain_validator_function(cls._parse)

    @classmethod
    def _parse(cls, v: Any) -> int:
        if isinstance(v, int) and not isinstance(v, bool):
            if v <= 0:
                raise ValueError(f"Byte size must be positive: {v}")
            return v
        if isinstance(v, str):
            v = v.lower().strip()
            # Order matters: check longer suffixes first
            units = [("gb", 1024**3), ("mb", 1024**2), ("kb", 1024), ("b", 1)]
            for unit, mult in units:
                if v.endswith(unit):
                    num_str = v[: -len(unit)].strip()
                    try:
                        return int(float(num_str) * mult)
                    except ValueError as err:
                        raise ValueError(f"Invalid number in byte size: {v}") from err
            try:
                return int(v)
            except ValueError:
                pass
        raise ValueError(f"Invalid byte size: {v}. Use format like '200kb', '1mb', or integer bytes.")


class ConversionOptions(BaseModel):
    """
    Per-call rendering options.

    Instances are frozen: concurrent conversions each receive their own
    value instead of mutating a shared renderer. Field names also accept the
    camelCase spelling used by JSON clients (``headingStyle`` etc.).
    """

    include_metadata: bool = Field(True, description="Prefix the document with title and metadata")
    heading_style: Literal["atx", "setext"] = Field("atx", description="Heading syntax")
    bullet_list_marker: Literal["-", "*", "+"] = Field("-", description="Unordered list marker")
    code_block_style: Literal["indented", "fenced"] = Field("fenced", description="Code block syntax")
    em_delimiter: Literal["*", "_"] = Field("*", description="Emphasis delimiter")
    strong_delimiter: Literal["**", "__"] = Field("**", description="Strong emphasis delimiter")
    metadata_format: Literal["block", "frontmatter"] = Field(
        "block",
        description="Metadata as a Markdown block or YAML frontmatter",
    )

    model_config = {
        "extra": "forbid",
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


def _check_url(url: str) -> str:
    url = url.strip()
    if not url:
        raise ValueError("URL is required")
    parsed = urlparse(url)
    if parsed.scheme.lower() not in SUPPORTED_SCHEMES:
        raise ValueError("URL must use HTTP or HTTPS protocol")
    if not parsed.hostname:
        raise ValueError("URL has no host")
    return url


class ConversionRequest(BaseModel):
    """
    Validated conversion request.

    Example:
        request = ConversionRequest.parse({
            "url": "https://example.com/post",
            "options": {"headingStyle": "setext", "includeMetadata": False},
        })
    """

    url: str = Field(..., description="http(s) URL of the page to convert")
    options: ConversionOptions = Field(default_factory=ConversionOptions)

    model_config = {"extra": "forbid"}

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        return _check_url(value)

    @classmethod
    def parse(cls, payload: Any) -> "ConversionRequest":
        """Validate a raw payload, raising InputError on any problem."""
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            messages = "; ".join(err["msg"] for err in e.errors())
            raise InputError(messages) from e


class NetworkConfig(BaseModel):
    """Configuration for the HTTP fetch."""

    user_agent: str = Field(DEFAULT_USER_AGENT, description="User-Agent header")
    timeout: float = Field(DEFAULT_TIMEOUT, gt=0, description="Wall-clock fetch timeout in seconds")
    max_content_size: ByteSize = Field(
        ByteSize(DEFAULT_MAX_CONTENT_SIZE),
        description="Maximum response size (e.g., '10mb')",
    )
    proxy: Optional[str] = Field(None, description="HTTP/HTTPS proxy URL")
    block_private_ips: bool = Field(
        False,
        description="Reject localhost, private and reserved addresses",
    )
    validate_content_type: bool = Field(True, description="Reject non-HTML responses")

    model_config = {"extra": "forbid"}


class PagemarkConfig(BaseModel):
    """
    Root configuration model for pagemark.

    Example:
        config = PagemarkConfig(
            network=NetworkConfig(timeout=10),
            options=ConversionOptions(heading_style="setext"),
        )

    YAML format:
        network:
          timeout: 10
          max_content_size: 5mb
        options:
          heading_style: setext
          include_metadata: false
    """

    network: NetworkConfig = Field(default_factory=NetworkConfig)
    options: ConversionOptions = Field(default_factory=ConversionOptions)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "PagemarkConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "PagemarkConfig":
        """Load config from YAML file."""
        return cls.from_yaml(path.read_text())
