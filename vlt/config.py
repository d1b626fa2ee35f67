"""Configuration: defaults <- YAML file <- env vars <- CLI args (highest priority)."""

import argparse
import logging
import os
import shlex
from dataclasses import asdict, dataclass

import yaml

from vlt.errors import ConfigError
from vlt.sources import DEFAULT_LINE_LIMIT, DEFAULT_VARNISHLOG_COMMAND

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _parse_bool(value: str) -> bool:
    return str(value).strip().lower() in ("true", "1", "yes")


def normalize_host(host: str) -> str:
    """Strip whitespace and trailing slashes: "example.com/ " -> "example.com"."""
    host = host.strip().rstrip("/")
    if not host:
        raise ConfigError("Target host is empty")
    return host


@dataclass(frozen=True)
class Config:
    target_host: str = ""
    input_path: str | None = None  # None = spawn varnishlog
    varnishlog_command: tuple[str, ...] = DEFAULT_VARNISHLOG_COMMAND
    timeout: float = 5.0
    verify_tls: bool = True
    metrics_interval: float = 0.0
    log_level: str = "INFO"
    line_limit: int = DEFAULT_LINE_LIMIT


def load_yaml_config(path: str | None) -> dict:
    """Load overrides from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    logger.debug("Loaded YAML config from %s", path)
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vlt",
        description="Replay live varnishlog traffic against another host",
    )
    parser.add_argument("host", help="Target host, e.g. teststage.local or 10.0.0.5:8080")
    parser.add_argument(
        "--input", default=None,
        help="Replay a captured varnishlog file ('-' for stdin) instead of running varnishlog",
    )
    parser.add_argument("--varnishlog", default=None, help="Command line used to run varnishlog")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")
    parser.add_argument(
        "--insecure", action="store_true", help="Do not verify TLS certificates"
    )
    parser.add_argument(
        "--metrics-interval", type=float, default=None,
        help="Log a stats summary every N seconds (0 = off)",
    )
    parser.add_argument("--log-level", default=None, choices=LOG_LEVELS)
    parser.add_argument("--config", default=None, help="YAML config file")
    return parser


def _convert(key: str, value) -> object:
    try:
        if key == "varnishlog_command":
            parts = shlex.split(value) if isinstance(value, str) else [str(v) for v in value]
            if not parts:
                raise ValueError("empty command")
            return tuple(parts)
        if key in ("timeout", "metrics_interval"):
            return float(value)
        if key == "line_limit":
            return int(value)
        if key == "verify_tls":
            return value if isinstance(value, bool) else _parse_bool(value)
        if key == "log_level":
            level = str(value).upper()
            if level not in LOG_LEVELS:
                raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}")
            return level
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {key}: {value!r} ({e})") from e
    return value


# YAML key / env var -> Config field
_YAML_KEYS = {
    "input": "input_path",
    "varnishlog": "varnishlog_command",
    "timeout": "timeout",
    "verify_tls": "verify_tls",
    "metrics_interval": "metrics_interval",
    "log_level": "log_level",
    "line_limit": "line_limit",
}
_ENV_VARS = {
    "VLT_INPUT": "input_path",
    "VLT_VARNISHLOG": "varnishlog_command",
    "VLT_TIMEOUT": "timeout",
    "VLT_VERIFY_TLS": "verify_tls",
    "VLT_METRICS_INTERVAL": "metrics_interval",
    "VLT_LOG_LEVEL": "log_level",
    "VLT_LINE_LIMIT": "line_limit",
}


def load_config(argv: list[str] | None = None, environ=None) -> Config:
    """Build Config from CLI args, env vars and an optional YAML file.

    Argument errors exit via argparse (status 2); bad values raise ConfigError.
    """
    if environ is None:
        environ = os.environ
    args = build_parser().parse_args(argv)

    kwargs = asdict(Config())

    yaml_data = load_yaml_config(args.config or environ.get("VLT_CONFIG"))
    for key, value in yaml_data.items():
        if key not in _YAML_KEYS:
            logger.warning("Ignoring unknown config key %r", key)
            continue
        field_name = _YAML_KEYS[key]
        kwargs[field_name] = _convert(field_name, value)

    for var, field_name in _ENV_VARS.items():
        if var in environ:
            kwargs[field_name] = _convert(field_name, environ[var])

    if args.input is not None:
        kwargs["input_path"] = args.input
    if args.varnishlog is not None:
        kwargs["varnishlog_command"] = _convert("varnishlog_command", args.varnishlog)
    if args.timeout is not None:
        kwargs["timeout"] = args.timeout
    if args.insecure:
        kwargs["verify_tls"] = False
    if args.metrics_interval is not None:
        kwargs["metrics_interval"] = args.metrics_interval
    if args.log_level is not None:
        kwargs["log_level"] = args.log_level

    kwargs["target_host"] = normalize_host(args.host)
    return Config(**kwargs)
