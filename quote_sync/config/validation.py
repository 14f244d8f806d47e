"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

SORT_KEYS = ("symbol", "price", "trend")
SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def _is_url(value: Any, schemes: tuple[str, ...]) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in schemes and bool(parsed.netloc)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_api_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate REST API parameters."""
        errors = []

        if "base_url" in params and not _is_url(params["base_url"], ("http", "https")):
            errors.append(ValidationError(
                field="api.base_url",
                message="Must be an http(s) URL",
                value=params["base_url"]
            ))

        if "request_timeout_seconds" in params and not _is_positive_number(params["request_timeout_seconds"]):
            errors.append(ValidationError(
                field="api.request_timeout_seconds",
                message="Must be a positive number",
                value=params["request_timeout_seconds"]
            ))

        return errors

    @staticmethod
    def validate_push_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate push channel parameters."""
        errors = []

        url = params.get("url")
        if url and not _is_url(url, ("ws", "wss", "http", "https")):
            errors.append(ValidationError(
                field="push.url",
                message="Must be a ws(s) URL or empty",
                value=url
            ))

        subscribe = params.get("subscribe_message")
        if subscribe is not None and not isinstance(subscribe, dict):
            errors.append(ValidationError(
                field="push.subscribe_message",
                message="Must be a mapping",
                value=subscribe
            ))

        if "connect_timeout_seconds" in params and not _is_positive_number(params["connect_timeout_seconds"]):
            errors.append(ValidationError(
                field="push.connect_timeout_seconds",
                message="Must be a positive number",
                value=params["connect_timeout_seconds"]
            ))

        heartbeat = params.get("heartbeat_seconds")
        if heartbeat is not None and not _is_positive_number(heartbeat):
            errors.append(ValidationError(
                field="push.heartbeat_seconds",
                message="Must be a positive number or empty",
                value=heartbeat
            ))

        return errors

    @staticmethod
    def validate_poll_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate polling parameters."""
        errors = []

        if "interval_seconds" in params and not _is_positive_number(params["interval_seconds"]):
            errors.append(ValidationError(
                field="poll.interval_seconds",
                message="Must be a positive number",
                value=params["interval_seconds"]
            ))

        if "timeout_seconds" in params and not _is_positive_number(params["timeout_seconds"]):
            errors.append(ValidationError(
                field="poll.timeout_seconds",
                message="Must be a positive number",
                value=params["timeout_seconds"]
            ))

        if "prune_missing" in params and not isinstance(params["prune_missing"], bool):
            errors.append(ValidationError(
                field="poll.prune_missing",
                message="Must be a boolean",
                value=params["prune_missing"]
            ))

        return errors

    @staticmethod
    def validate_history_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate history window parameters."""
        errors = []

        if "window_size" in params:
            value = params["window_size"]
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                errors.append(ValidationError(
                    field="history.window_size",
                    message="Must be a positive integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_view_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate derived view parameters."""
        errors = []

        if "default_sort_key" in params and params["default_sort_key"] not in SORT_KEYS:
            errors.append(ValidationError(
                field="view.default_sort_key",
                message=f"Must be one of {', '.join(SORT_KEYS)}",
                value=params["default_sort_key"]
            ))

        for name in ("default_sort_direction", "toggle_default_direction"):
            if name in params and params[name] not in SORT_DIRECTIONS:
                errors.append(ValidationError(
                    field=f"view.{name}",
                    message="Must be 'asc' or 'desc'",
                    value=params[name]
                ))

        if "percent_places" in params:
            value = params["percent_places"]
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                errors.append(ValidationError(
                    field="view.percent_places",
                    message="Must be a non-negative integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "api" in config:
            errors.extend(ConfigValidator.validate_api_params(config["api"]))

        if "push" in config:
            errors.extend(ConfigValidator.validate_push_params(config["push"]))

        if "poll" in config:
            errors.extend(ConfigValidator.validate_poll_params(config["poll"]))

        if "history" in config:
            errors.extend(ConfigValidator.validate_history_params(config["history"]))

        if "view" in config:
            errors.extend(ConfigValidator.validate_view_params(config["view"]))

        return errors
