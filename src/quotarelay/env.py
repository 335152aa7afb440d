import os
from collections.abc import Iterable
from typing import Union

from .types import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, KeyConfig, ServiceConfig

DEFAULT_ENV_PREFIX = "QUOTARELAY_"


def _parse_env_file(env_path: str) -> dict[str, str]:
    """Parse a simple .env file into a dict without modifying os.environ.

    Supports KEY=VALUE pairs and an optional leading ``export``; comments and
    blank lines are ignored and surrounding quotes are stripped.
    """
    values: dict[str, str] = {}
    try:
        with open(env_path) as f:
            for raw_line in f:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                if line.startswith("export "):
                    line = line[len("export ") :]
                key, val = line.split("=", 1)
                key = key.strip()
                val = val.strip().strip('"').strip("'")
                if key:
                    values[key] = val
    except FileNotFoundError:
        # a missing file just means nothing to add
        pass
    return values


def _env_map(env_path: Union[str, None]) -> dict[str, str]:
    # real environment wins over the .env file
    file_env = _parse_env_file(env_path) if env_path else {}
    return {**file_env, **os.environ}


def _expand(cfg_name: str, token: str, split_commas: bool) -> list[KeyConfig]:
    if split_commas and "," in token:
        parts = [t.strip() for t in token.split(",") if t.strip()]
        return [KeyConfig(name=f"{cfg_name}_{idx + 1}", token=p) for idx, p in enumerate(parts)]
    return [KeyConfig(name=cfg_name, token=token.strip())]


def load_keyconfigs_from_env(
    names: Union[Iterable[str], None] = None,
    prefix: Union[str, None] = None,
    env_path: Union[str, None] = None,
    **kwargs,
) -> list[KeyConfig]:
    """Create KeyConfig objects from environment variables.

    - 'names': explicit env var names, one KeyConfig per variable found.
    - 'prefix': every env var starting with the prefix; the KeyConfig name is the
        variable name, or the suffix after the prefix with strip_prefix=True.
    - Both may be given; results are combined and duplicate tokens dropped.
        Colliding names get a further numeric suffix so every name is unique.
    - 'env_path': a .env file used to augment lookups (process env takes precedence).

    kwargs keywords:
    to_lower_names: make names lowercase (default False)
    split_commas: split comma-separated values into several keys (default True)
    strip_prefix: strip prefix from names (default False)
    """
    env_map = _env_map(env_path)
    split_commas = kwargs.get("split_commas", True)
    to_lower_names = kwargs.get("to_lower_names", False)
    strip_prefix = kwargs.get("strip_prefix", False)

    results: list[KeyConfig] = []
    seen: set[str] = set()
    seen_names: set[str] = set()

    def _unique(name: str) -> str:
        # comma expansion can collide with a real variable, e.g. KEY="a,b" vs KEY_1
        candidate, n = name, 1
        while candidate in seen_names:
            n += 1
            candidate = f"{name}_{n}"
        return candidate

    def _add(cfg_name: str, token: str) -> None:
        name = cfg_name.lower() if to_lower_names else cfg_name
        for cfg in _expand(name, token, split_commas):
            if cfg.token and cfg.token not in seen:
                seen.add(cfg.token)
                cfg.name = _unique(cfg.name)
                seen_names.add(cfg.name)
                results.append(cfg)

    for var in names or ():
        token = env_map.get(var)
        if token:
            _add(var, token)

    if prefix:
        for var in sorted(env_map):
            token = env_map[var]
            if not (var.startswith(prefix) and token):
                continue
            _add(var[len(prefix) :] if strip_prefix else var, token)

    return results


def load_service_config_from_env(
    prefix: str = DEFAULT_ENV_PREFIX, env_path: Union[str, None] = None
) -> ServiceConfig:
    """Build a ServiceConfig from <prefix>BASE_URL, <prefix>KEY_PARAM and <prefix>TIMEOUT."""
    env_map = _env_map(env_path)
    raw_timeout = env_map.get(f"{prefix}TIMEOUT")
    timeout = DEFAULT_TIMEOUT
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError as exc:
            raise ValueError(f"{prefix}TIMEOUT must be a number, got {raw_timeout!r}") from exc
        if timeout <= 0:
            raise ValueError(f"{prefix}TIMEOUT must be positive, got {raw_timeout!r}")
    return ServiceConfig(
        base_url=(env_map.get(f"{prefix}BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
        key_param=env_map.get(f"{prefix}KEY_PARAM") or "key",
        timeout=timeout,
    )
