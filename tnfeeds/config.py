"""
Configuration Loader for the TennesseeFeeds aggregator.

Loads and validates configuration from YAML files.
"""
import os
import logging
from pathlib import Path
from typing import Dict, Any
import yaml
from urllib.parse import urlparse

from tnfeeds.models import AggregatorConfig, LogLevel, ProxyConfig, ProxyFormat, Source
from tnfeeds.sources import DEFAULT_SOURCES

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Configuration error."""

    pass


class ConfigLoader:
    """
    Loads and validates aggregator configuration.

    Supports:
    - Loading from YAML file
    - Environment variable overrides (TNFEEDS_USER_AGENT, TNFEEDS_OUTPUT_FILE)
    - Falling back to the built-in source registry
    """

    def __init__(self, config_path: Path):
        """
        Initialize config loader.

        Args:
            config_path: Path to config.yaml file
        """
        self.config_path = Path(config_path)

    def load(self) -> AggregatorConfig:
        """
        Load and validate configuration.

        Returns:
            AggregatorConfig object

        Raises:
            ConfigError: If config is invalid or missing
        """
        if not self.config_path.exists():
            raise ConfigError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, "r") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML: {e}")

        if not config_data:
            raise ConfigError("Configuration file is empty")

        if not isinstance(config_data, dict):
            raise ConfigError("Configuration must be a mapping")

        try:
            return self._parse_config(config_data)
        except ConfigError:
            raise
        except Exception as e:
            raise ConfigError(f"Invalid configuration: {e}")

    def _parse_config(self, data: Dict[str, Any]) -> AggregatorConfig:
        """
        Parse and validate configuration data.

        Args:
            data: Parsed YAML data

        Returns:
            AggregatorConfig object

        Raises:
            ConfigError: If validation fails
        """
        # Parse log level with validation
        log_level_str = str(data.get("log_level", "info")).lower()
        try:
            log_level = LogLevel(log_level_str)
        except ValueError:
            valid_levels = [level.value for level in LogLevel]
            raise ConfigError(f"Invalid log_level '{log_level_str}'. Valid values: {valid_levels}")

        if "sources" in data:
            sources_data = data.get("sources") or []
            if not sources_data:
                raise ConfigError("Configuration must include at least one source")
            sources = tuple(self._parse_source(s) for s in sources_data)
        else:
            logger.info("No sources configured, using built-in source registry")
            sources = DEFAULT_SOURCES

        proxies = tuple(self._parse_proxy(p) for p in data.get("proxies") or [])

        direct_fetch = data.get("direct_fetch", True)
        if not isinstance(direct_fetch, bool):
            raise ConfigError(f"direct_fetch must be true or false, got: {direct_fetch}")
        if not direct_fetch and not proxies:
            raise ConfigError("direct_fetch is disabled but no proxies are configured")

        request_timeout = data.get("request_timeout", 10)
        if isinstance(request_timeout, bool) or not isinstance(request_timeout, (int, float)) \
                or request_timeout <= 0:
            raise ConfigError(f"request_timeout must be a positive number, got: {request_timeout}")

        description_max_length = data.get("description_max_length", 200)
        if type(description_max_length) is not int or description_max_length < 1:
            raise ConfigError(
                f"description_max_length must be a positive integer, got: {description_max_length}"
            )

        use_sample_fallback = data.get("use_sample_fallback", True)
        if not isinstance(use_sample_fallback, bool):
            raise ConfigError(f"use_sample_fallback must be true or false, got: {use_sample_fallback}")

        user_agent = os.getenv("TNFEEDS_USER_AGENT", data.get("user_agent"))
        output_file = os.getenv("TNFEEDS_OUTPUT_FILE", data.get("output_file"))

        optional: Dict[str, Any] = {}
        if user_agent:
            optional["user_agent"] = user_agent
        if output_file:
            optional["output_file"] = output_file

        enabled_count = sum(1 for s in sources if s.enabled)
        logger.info(
            f"Loaded configuration with {len(sources)} sources ({enabled_count} enabled), "
            f"{len(proxies)} proxies, timeout {request_timeout}s"
        )

        return AggregatorConfig(
            sources=sources,
            proxies=proxies,
            direct_fetch=direct_fetch,
            request_timeout=float(request_timeout),
            description_max_length=description_max_length,
            use_sample_fallback=use_sample_fallback,
            log_level=log_level,
            **optional,
        )

    def _parse_source(self, data: Dict[str, Any]) -> Source:
        """
        Parse and validate a single source configuration.

        Args:
            data: Source configuration data

        Returns:
            Source object

        Raises:
            ConfigError: If validation fails
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Source entry must be a mapping, got: {data!r}")

        required_fields = ["name", "feed_url"]
        for field in required_fields:
            if field not in data:
                raise ConfigError(f"Missing required field in source config: {field}")

        name = str(data["name"] or "").strip()
        feed_url = str(data["feed_url"] or "").strip()

        if not name:
            raise ConfigError("Source name cannot be empty")

        if not self._is_valid_url(feed_url):
            raise ConfigError(f"Invalid feed_url for source '{name}': {feed_url}")

        enabled = data.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ConfigError(f"enabled must be true or false for source '{name}', got: {enabled!r}")

        return Source(
            name=name,
            feed_url=feed_url,
            region=str(data.get("region") or "").strip(),
            category=str(data.get("category") or "General").strip(),
            enabled=enabled,
        )

    def _parse_proxy(self, data: Dict[str, Any]) -> ProxyConfig:
        """Parse and validate a single proxy service entry."""
        if not isinstance(data, dict):
            raise ConfigError(f"Proxy entry must be a mapping, got: {data!r}")

        for field in ("name", "url"):
            if not data.get(field):
                raise ConfigError(f"Missing required field in proxy config: {field}")

        url = str(data["url"]).strip()
        if not self._is_valid_url(url):
            raise ConfigError(f"Invalid URL for proxy '{data['name']}': {url}")

        format_str = str(data.get("format", "json")).lower()
        try:
            proxy_format = ProxyFormat(format_str)
        except ValueError:
            valid_formats = [f.value for f in ProxyFormat]
            raise ConfigError(f"Invalid proxy format '{format_str}'. Valid values: {valid_formats}")

        return ProxyConfig(name=str(data["name"]).strip(), url=url, format=proxy_format)

    def _is_valid_url(self, url: str) -> bool:
        """
        Validate URL format.

        Only allows http and https schemes to prevent dangerous schemes
        like file://, javascript://, or data:// URIs.

        Args:
            url: URL to validate

        Returns:
            True if valid HTTP/HTTPS URL, False otherwise
        """
        try:
            result = urlparse(url)
            if result.scheme not in ("http", "https"):
                logger.warning(f"URL has invalid scheme '{result.scheme}': {url}")
                return False
            return bool(result.netloc)
        except ValueError as e:
            logger.warning(f"Failed to parse URL '{url}': {e}")
            return False


def configure_logging(level: LogLevel) -> None:
    """Apply the configured log level to the root logger."""
    logging.getLogger().setLevel(getattr(logging, level.value.upper()))
