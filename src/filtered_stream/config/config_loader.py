"""
Configuration loader for the filtered stream client.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..core.exceptions import ConfigError
from ..core.models import Rule, RuleSet


logger = logging.getLogger(__name__)

DEFAULT_STREAM_URL = "https://api.twitter.com/2/tweets/search/stream"
DEFAULT_RULES_URL = "https://api.twitter.com/2/tweets/search/stream/rules"
DEFAULT_TWEET_FIELDS = (
    "author_id,conversation_id,created_at,entities,geo,id,in_reply_to_user_id,lang,text"
)

TOKEN_ENV_VARS = ("STREAM_BEARER_TOKEN", "BEARER_TOKEN")


def _read_structured_file(path: Path, what: str) -> Any:
    """Read a JSON or YAML file, chosen by extension."""
    if not path.exists():
        raise ConfigError(f"{what} not found: {path}")

    logger.info(f"Loading {what.lower()} from: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                return yaml.safe_load(f)
            return json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Unable to read {what.lower()} {path}: {e}") from e


class StreamConfig:
    """
    Configuration for the filtered stream client.

    Loads a settings file (JSON or YAML) holding the bearer token and
    optional endpoint overrides, and a rules file holding the desired rules.
    """

    def __init__(
        self,
        config_path: Optional[Union[str, Path]] = None,
        rules_path: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize configuration.

        Args:
            config_path: Path to settings file (optional)
            rules_path: Path to rules file (optional)
        """
        self.config_path = Path(config_path) if config_path else None
        self.rules_path = Path(rules_path) if rules_path else None
        self.config = self._default_config()
        if self.config_path:
            self.config.update(self._load_config())
        self._apply_env_overrides()

    def _load_config(self) -> Dict[str, Any]:
        """Load settings from file."""
        config = _read_structured_file(self.config_path, "Config file") or {}
        if not isinstance(config, dict):
            raise ConfigError(f"Config file must contain a mapping: {self.config_path}")

        # Original key name for the credentials file
        if "BearerToken" in config:
            config.setdefault("bearer_token", config.pop("BearerToken"))
        return config

    def _default_config(self) -> Dict[str, Any]:
        """Return default configuration."""
        return {
            "bearer_token": None,
            "stream_url": DEFAULT_STREAM_URL,
            "rules_url": DEFAULT_RULES_URL,
            "user_agent": "v2FilteredStreamPython",
            "timeout_seconds": 20,
            "connect_timeout_seconds": 10,
            "tweet_fields": DEFAULT_TWEET_FIELDS,
            "expansions": None,
            "stop_file": "./stop",
            # None keeps the backoff unbounded
            "max_backoff_seconds": None,
            "chunk_size": 512,
        }

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides to loaded config."""
        for var in TOKEN_ENV_VARS:
            token = os.environ.get(var)
            if token:
                self.config["bearer_token"] = token
                break

        stop_file = os.environ.get("STREAM_STOP_FILE")
        if stop_file:
            self.config["stop_file"] = stop_file

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by key."""
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

        return value if value is not None else default

    @property
    def bearer_token(self) -> str:
        token = self.get("bearer_token")
        if not token:
            raise ConfigError(
                "No bearer token configured: set BearerToken in the config file "
                f"or one of {', '.join(TOKEN_ENV_VARS)}"
            )
        return token

    @property
    def stop_file(self) -> Path:
        return Path(self.get("stop_file", "./stop"))

    @property
    def max_backoff_seconds(self) -> Optional[float]:
        value = self.get("max_backoff_seconds")
        return float(value) if value is not None else None

    def get_stream_params(self) -> Dict[str, str]:
        """Query parameters for the stream request."""
        params = {"tweet.fields": self.get("tweet_fields", DEFAULT_TWEET_FIELDS)}
        expansions = self.get("expansions")
        if expansions:
            params["expansions"] = expansions
        return params

    def get_rules(self) -> RuleSet:
        """
        Load the desired rule set.

        Returns an empty list when no rules file is configured. Rule values
        are passed to upstream as-is.
        """
        if self.rules_path is None:
            return []

        raw = _read_structured_file(self.rules_path, "Rules file")
        if raw is None:
            return []
        if isinstance(raw, dict) and "data" in raw:
            raw = raw["data"]
        if not isinstance(raw, list):
            raise ConfigError(f"Rules file must contain a list of rules: {self.rules_path}")

        rules: List[Rule] = []
        for index, entry in enumerate(raw):
            if not isinstance(entry, dict) or not isinstance(entry.get("value"), str):
                raise ConfigError(
                    f"Rule #{index} in {self.rules_path} must be a mapping with a string 'value'"
                )
            rules.append(Rule(value=entry["value"], tag=entry.get("tag")))

        logger.info(f"Loaded {len(rules)} desired rule(s)", extra={"rule_count": len(rules)})
        return rules
