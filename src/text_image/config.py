from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from .cache import DEFAULT_CAPACITY
from .invoker import DEFAULT_BINARY, DEFAULT_ENV
from .models import ConversionOptions
from .sources import DEFAULT_USER_AGENT


CONFIG_FILE = Path("config.toml")


@dataclass(slots=True)
class ConverterConfig:
    binary: str = DEFAULT_BINARY
    env: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ENV))


@dataclass(slots=True)
class CacheConfig:
    capacity: int = DEFAULT_CAPACITY


@dataclass(slots=True)
class RuntimeConfig:
    temp_dir: Path | None = None
    log_file: Path | None = None
    fetch_timeout_s: float | None = None
    user_agent: str = DEFAULT_USER_AGENT
    enable_local_api: bool = False
    parallelism: int = 1


@dataclass(slots=True)
class HookConfig:
    """Option bundle used when images are converted for rendered documents."""

    braille: bool = True
    dither: bool = True
    threshold: int = 100
    complex: bool = True
    color: bool = False

    def to_options(self) -> ConversionOptions:
        return ConversionOptions(
            color=self.color,
            complex=self.complex,
            braille=self.braille,
            dither=self.dither,
            threshold=self.threshold,
            suppress_display=True,
        )


@dataclass(slots=True)
class APIConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    max_upload_mb: int = 25


@dataclass(slots=True)
class AppConfig:
    converter: ConverterConfig = field(default_factory=ConverterConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    hook: HookConfig = field(default_factory=HookConfig)
    api: APIConfig = field(default_factory=APIConfig)


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _section(raw: Mapping[str, object], name: str) -> Mapping[str, object] | None:
    value = raw.get(name)
    return value if isinstance(value, Mapping) else None


def _optional_path(value: object | None) -> Path | None:
    if not value:
        return None
    return Path(str(value))


def _build_converter(data: Mapping[str, object] | None) -> ConverterConfig:
    if not data:
        return ConverterConfig()
    env = data.get("env")
    return ConverterConfig(
        binary=str(data.get("binary", DEFAULT_BINARY)),
        env={str(k): str(v) for k, v in env.items()} if isinstance(env, Mapping) else dict(DEFAULT_ENV),
    )


def _build_cache(data: Mapping[str, object] | None) -> CacheConfig:
    if not data:
        return CacheConfig()
    return CacheConfig(capacity=int(data.get("capacity", DEFAULT_CAPACITY)))


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    timeout = float(data.get("fetch_timeout_s", 0) or 0)
    return RuntimeConfig(
        temp_dir=_optional_path(data.get("temp_dir")),
        log_file=_optional_path(data.get("log_file")),
        fetch_timeout_s=timeout if timeout > 0 else None,
        user_agent=str(data.get("user_agent", DEFAULT_USER_AGENT)),
        enable_local_api=bool(data.get("enable_local_api", False)),
        parallelism=int(data.get("parallelism", 1)),
    )


def _build_hook(data: Mapping[str, object] | None) -> HookConfig:
    if not data:
        return HookConfig()
    return HookConfig(
        braille=bool(data.get("braille", True)),
        dither=bool(data.get("dither", True)),
        threshold=int(data.get("threshold", 100)),
        complex=bool(data.get("complex", True)),
        color=bool(data.get("color", False)),
    )


def _build_api(data: Mapping[str, object] | None) -> APIConfig:
    if not data:
        return APIConfig()
    return APIConfig(
        host=str(data.get("host", "127.0.0.1")),
        port=int(data.get("port", 8000)),
        max_upload_mb=int(data.get("max_upload_mb", 25)),
    )


def load_config(path: Path | None = None) -> AppConfig:
    path = path or CONFIG_FILE
    raw = _read_toml(path)
    return AppConfig(
        converter=_build_converter(_section(raw, "converter")),
        cache=_build_cache(_section(raw, "cache")),
        runtime=_build_runtime(_section(raw, "runtime")),
        hook=_build_hook(_section(raw, "hook")),
        api=_build_api(_section(raw, "api")),
    )


def dump_config(config: AppConfig) -> str:
    payload = {
        "converter": {
            "binary": config.converter.binary,
            "env": dict(config.converter.env),
        },
        "cache": {
            "capacity": config.cache.capacity,
        },
        "runtime": {
            "temp_dir": str(config.runtime.temp_dir) if config.runtime.temp_dir else "",
            "log_file": str(config.runtime.log_file) if config.runtime.log_file else "",
            "fetch_timeout_s": config.runtime.fetch_timeout_s or 0,
            "user_agent": config.runtime.user_agent,
            "enable_local_api": config.runtime.enable_local_api,
            "parallelism": config.runtime.parallelism,
        },
        "hook": {
            "braille": config.hook.braille,
            "dither": config.hook.dither,
            "threshold": config.hook.threshold,
            "complex": config.hook.complex,
            "color": config.hook.color,
        },
        "api": {
            "host": config.api.host,
            "port": config.api.port,
            "max_upload_mb": config.api.max_upload_mb,
        },
    }
    return json.dumps(payload, indent=2)
