from __future__ import annotations

import math
import os
import re
from dataclasses import dataclass
from typing import Mapping

from .errors import ConfigError

DEFAULT_NAMESPACE = "default"
DEFAULT_MONGO_ADDRESS = "localhost:27017"
DEFAULT_K8S_REQUEST_TIMEOUT_S = 10.0
DEFAULT_MONGO_TIMEOUT_S = 20.0
DEFAULT_RECONCILE_INTERVAL_S = 5.0

_TRUE = {"1", "t", "true", "yes", "y", "on"}
_FALSE = {"0", "f", "false", "no", "n", "off"}

# Go style durations: "500ms", "7s", "1m30s", "1.5h".
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def parse_duration(raw: str) -> float:
    """Parse a duration into seconds.

    Accepts Go duration strings (``10s``, ``1m30s``, ``250ms``) or a bare number of seconds.
    """
    text = raw.strip()
    if not text:
        raise ValueError("empty duration")
    try:
        return float(text)
    except ValueError:
        pass

    total = 0.0
    pos = 0
    for m in _DURATION_PART_RE.finditer(text):
        if m.start() != pos:
            break
        total += float(m.group(1)) * _UNIT_SECONDS[m.group(2)]
        pos = m.end()
    if pos != len(text):
        raise ValueError(f"not a duration: {raw!r}")
    return total


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        return parse_bool(raw)
    except ValueError as e:
        raise ConfigError(f"invalid {name} value {raw!r}: {e}") from e


def _env_duration(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        seconds = parse_duration(raw)
    except ValueError as e:
        raise ConfigError(f"invalid {name} value {raw!r}: {e}") from e
    if not math.isfinite(seconds) or seconds <= 0:
        raise ConfigError(f"invalid {name} value {raw!r}: must be positive")
    return seconds


@dataclass(frozen=True)
class Settings:
    label_selector: str
    namespace: str = DEFAULT_NAMESPACE
    mongo_address: str = DEFAULT_MONGO_ADDRESS
    # Emit primary="false" on non-primary pods instead of removing the label.
    label_all: bool = False
    debug: bool = False
    k8s_request_timeout_s: float = DEFAULT_K8S_REQUEST_TIMEOUT_S

    mongo_timeout_s: float = DEFAULT_MONGO_TIMEOUT_S
    reconcile_interval_s: float = DEFAULT_RECONCILE_INTERVAL_S

    # Chooses the in-cluster service account over a local kubeconfig.
    in_cluster: bool = False


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from the process environment (or the given mapping).

    Raises ConfigError when LABEL_SELECTOR is missing or any value does not parse.
    """
    env = os.environ if environ is None else environ

    label_selector = env.get("LABEL_SELECTOR")
    if label_selector is None:
        raise ConfigError("please export LABEL_SELECTOR")

    return Settings(
        label_selector=label_selector,
        namespace=env.get("NAMESPACE", DEFAULT_NAMESPACE),
        mongo_address=env.get("MONGO_ADDRESS", DEFAULT_MONGO_ADDRESS),
        label_all=_env_bool(env, "LABEL_ALL", False),
        debug=_env_bool(env, "DEBUG", False),
        k8s_request_timeout_s=_env_duration(env, "K8S_REQUEST_TIMEOUT", DEFAULT_K8S_REQUEST_TIMEOUT_S),
        mongo_timeout_s=_env_duration(env, "MONGO_TIMEOUT", DEFAULT_MONGO_TIMEOUT_S),
        reconcile_interval_s=_env_duration(env, "RECONCILE_INTERVAL", DEFAULT_RECONCILE_INTERVAL_S),
        in_cluster="KUBERNETES_SERVICE_HOST" in env,
    )
