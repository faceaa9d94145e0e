"""
Gunicorn configuration for production deployment.

Usage:
    gunicorn -c gunicorn_config.py app:app
"""

import os


def get_env_int(var_name: str, default: int, min_value: int = 1, max_value: int = 1000) -> int:
    """Read an integer environment variable and check it is within range."""
    value = os.getenv(var_name)
    if value is None:
        return default
    try:
        int_value = int(value)
    except ValueError:
        raise ValueError(f"{var_name} must be a valid integer, got '{value}'")
    if int_value < min_value or int_value > max_value:
        raise ValueError(
            f"{var_name} must be between {min_value} and {max_value}, got {int_value}"
        )
    return int_value


def get_env_str(var_name: str, default: str, allowed_values: list = None) -> str:
    """Read a string environment variable, optionally restricted to allowed values."""
    value = os.getenv(var_name, default)
    if allowed_values and value not in allowed_values:
        raise ValueError(
            f"{var_name} must be one of {allowed_values}, got '{value}'"
        )
    return value


# Server socket
bind = get_env_str('GUNICORN_BIND', '0.0.0.0:5000')

# The story pipeline lives in process memory, so a single worker process
# serves every request; concurrency comes from threads.
workers = 1
worker_class = 'gthread'
threads = get_env_int('GUNICORN_THREADS', 8, min_value=1, max_value=64)

# Must exceed LLM_TIMEOUT_SECONDS so a slow Gemini call is answered, not killed
timeout = get_env_int('GUNICORN_TIMEOUT', 120, min_value=1, max_value=3600)
graceful_timeout = 30
keepalive = 5

# Logging
accesslog = get_env_str('GUNICORN_ACCESS_LOG', '-')  # '-' means stdout
errorlog = get_env_str('GUNICORN_ERROR_LOG', '-')  # '-' means stderr
loglevel = get_env_str('GUNICORN_LOG_LEVEL', 'info', allowed_values=['debug', 'info', 'warning', 'error', 'critical'])

proc_name = 'storycuts'
preload_app = True
