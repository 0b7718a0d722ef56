"""Settings: defaults → flow-exec.yml → FLOW_EXEC_* environment."""

import os
from dataclasses import dataclass

import yaml

CONFIG_FILE = "flow-exec.yml"

ENV_OVERRIDES = {
    "FLOW_EXEC_BASE_DIR": "base_dir",
    "FLOW_EXEC_LOGS_DIR": "logs_dir",
    "FLOW_EXEC_MSYS2": "msys2_dir",
}


@dataclass
class Settings:
    base_dir: str
    logs_dir: str
    msys2_dir: str


def default_base_dir() -> str:
    return os.path.join(os.path.expanduser("~"), ".flow-exec")


def _config_path() -> str | None:
    path = os.environ.get("FLOW_EXEC_CONFIG")
    if path:
        return path
    if os.path.isfile(CONFIG_FILE):
        return CONFIG_FILE
    return None


def read_config_file(path: str) -> dict:
    """Parse a YAML settings file. An empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at top level in {path}, got {type(data).__name__}")
    return data


def load_settings(path: str | None = None) -> Settings:
    """Resolve settings.

    Order: built-in defaults → YAML file (explicit path, FLOW_EXEC_CONFIG,
    or ./flow-exec.yml) → FLOW_EXEC_* environment variables. logs_dir and
    msys2_dir default to subdirectories of whatever base_dir ends up as.
    """
    raw: dict = {}
    path = path or _config_path()
    if path:
        raw.update({k: v for k, v in read_config_file(path).items() if v is not None})

    for env_var, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        # set but empty still counts as set
        if value is not None:
            raw[key] = value

    base_dir = os.path.expanduser(str(raw.get("base_dir", default_base_dir())))
    logs_dir = raw.get("logs_dir", os.path.join(base_dir, "logs"))
    msys2_dir = raw.get("msys2_dir", os.path.join(base_dir, "msys64"))
    return Settings(
        base_dir=base_dir,
        logs_dir=os.path.expanduser(str(logs_dir)),
        msys2_dir=os.path.expanduser(str(msys2_dir)),
    )
