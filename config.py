"""YAML config loader for classroom-todo"""

import os
import stat

import yaml


_CONFIG_DIR = os.path.expanduser("~/.config/classroom-todo")
_CONFIG_PATH = os.path.join(_CONFIG_DIR, "config.yaml")

COURSE_ERROR_POLICIES = ("fail", "skip")


class ConfigError(ValueError):
    pass


class Config:
    def __init__(self, data):
        data = data or {}
        self.courses = _parse_courses(data.get("courses"))
        self.client_secret_file = os.path.expanduser(
            data.get("client_secret_file") or os.path.join(_CONFIG_DIR, "client_secret.json")
        )
        self.token_file = os.path.expanduser(
            data.get("token_file") or os.path.join(_CONFIG_DIR, "token.json")
        )
        self.max_concurrency = _positive_int(data.get("max_concurrency", 8), "max_concurrency")
        self.timeout = _positive_seconds(data.get("timeout", 30), "timeout")
        # Fixed port for the OAuth redirect, so it can be forwarded over SSH; 0 picks a free one
        self.oauth_port = _port(data.get("oauth_port", 0), "oauth_port")
        self.on_course_error = str(data.get("on_course_error", "fail")).lower()
        if self.on_course_error not in COURSE_ERROR_POLICIES:
            raise ConfigError(
                f"on_course_error must be one of {', '.join(COURSE_ERROR_POLICIES)}, "
                f"got {self.on_course_error!r}"
            )

    @classmethod
    def load(cls, path=None):
        path = path or _CONFIG_PATH
        if not os.path.exists(path):
            raise FileNotFoundError(
                f"Config not found: {path}\n"
                f"Copy config.example.yaml to {_CONFIG_PATH} and fill in values."
            )
        _check_permissions(path)
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls(data)

    @property
    def course_ids(self):
        return [course_id for course_id, _ in self.courses]

    @property
    def course_names(self):
        """Course ID -> display name, for courses configured with a name"""
        return {course_id: name for course_id, name in self.courses if name}

    @property
    def skip_failed_courses(self):
        return self.on_course_error == "skip"

    @property
    def log_dir(self):
        return os.path.join(_CONFIG_DIR, "logs")


def _parse_courses(raw):
    """Accept plain IDs or {id, name} mappings; return [(id, name_or_None)]"""
    if not raw:
        raise ConfigError("courses must list at least one course ID")
    if not isinstance(raw, list):
        raise ConfigError(f"courses must be a list of course IDs, got {raw!r}")
    courses = []
    for entry in raw:
        if isinstance(entry, dict):
            course_id = entry.get("id")
            name = entry.get("name")
        else:
            course_id, name = entry, None
        # YAML reads unquoted numeric IDs as ints
        if isinstance(course_id, bool) or not isinstance(course_id, (str, int)):
            raise ConfigError(f"Course entry without a valid id: {entry!r}")
        course_id = str(course_id).strip()
        if not course_id:
            raise ConfigError(f"Course entry without a valid id: {entry!r}")
        if course_id in (c for c, _ in courses):
            continue
        courses.append((course_id, name))
    return courses


def _integer(value, key):
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {value!r}") from None


def _positive_int(value, key):
    number = _integer(value, key)
    if number < 1:
        raise ConfigError(f"{key} must be at least 1, got {number}")
    return number


def _positive_seconds(value, key):
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number of seconds, got {value!r}")
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number of seconds, got {value!r}") from None
    if not seconds > 0:
        raise ConfigError(f"{key} must be greater than 0, got {value!r}")
    return seconds


def _port(value, key):
    port = _integer(value, key)
    if not 0 <= port <= 65535:
        raise ConfigError(f"{key} must be between 0 and 65535, got {port}")
    return port


def _check_permissions(path):
    """Warn if config file has overly permissive permissions"""
    mode = os.stat(path).st_mode
    if mode & (stat.S_IRWXG | stat.S_IRWXO):
        import warnings
        warnings.warn(
            f"Config file '{path}' has permissive permissions. "
            f"Run: chmod 600 {path}"
        )
