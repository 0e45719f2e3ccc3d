"""Configuration loader for cache backends."""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml

from .cache import Cache
from .pools import build_store


def _split_servers(value: Any) -> List[str]:
    if isinstance(value, str):
        value = value.split(",")
    return [s.strip() for s in value if s.strip()]


@dataclass(frozen=True)
class CacheConfig:
    backend: str
    prefix: str
    disk_directory: Path
    memcached_servers: Tuple[str, ...]
    memcached_timeout_sec: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheConfig":
        disk = data.get("disk") or {}
        memcached = data.get("memcached") or {}
        return cls(
            backend=data.get("backend", "memory"),
            prefix=data.get("prefix", ""),
            disk_directory=Path(disk.get("directory", ".tokencache")),
            memcached_servers=tuple(_split_servers(memcached.get("servers", ["127.0.0.1:11211"]))),
            memcached_timeout_sec=float(memcached.get("timeout_sec", 1.0)),
        )


# env var -> (section or None for top level, field, cast)
ENV_MAP: Dict[str, Tuple[Optional[str], str, Callable[[str], Any]]] = {
    "TOKENCACHE_BACKEND": (None, "backend", str.strip),
    "TOKENCACHE_PREFIX": (None, "prefix", str),
    "TOKENCACHE_DISK_DIRECTORY": ("disk", "directory", str),
    "TOKENCACHE_MEMCACHED_SERVERS": ("memcached", "servers", _split_servers),
    "TOKENCACHE_MEMCACHED_TIMEOUT_SEC": ("memcached", "timeout_sec", float),
}


def merge_env_overrides(config_data: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(config_data)
    for env_name, (section, name, cast) in ENV_MAP.items():
        raw = os.environ.get(env_name)
        if raw is None:
            continue
        target = merged if section is None else merged.setdefault(section, {})
        target[name] = cast(raw)
    return merged


def load_config(config_path: str | Path = "config/tokencache.defaults.yml") -> CacheConfig:
    path = Path(config_path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return CacheConfig.from_dict(merge_env_overrides(data))


def build_cache(config: CacheConfig) -> Cache:
    return Cache(build_store(config))
