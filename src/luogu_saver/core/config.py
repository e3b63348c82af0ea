"""Configuration model for the content-service client and render pipeline.

SaverConfig

`endpoint` (`str`)
: Base URL of the content service. Leave empty to issue requests against the
  bare paths, which is useful behind a reverse proxy.

`user_agent` (`str`)
: Value of the `User-Agent` header attached to every request.

`request_timeout` (`float`)
: Seconds before an HTTP request to the content service is abandoned.

`pool_size` (`int`)
: Number of render surfaces that may be open at the same time.

`acquire_timeout` (`float | None`)
: Seconds a request waits for a free render surface. `None` waits forever.

`viewport_width` (`int`)
: Default viewport width in CSS pixels when the caller does not pass one.

`viewport_height` (`int`)
: Initial viewport height. Full-page captures grow past it.

`device_scale_factor` (`float`)
: Pixel ratio applied to captures for sharper output.

`navigation_timeout` (`float`)
: Ceiling for the initial load to reach network idle. Exceeding it degrades
  the capture instead of failing it.

`font_timeout` (`float`)
: Ceiling for the web font readiness signal.

`image_timeout` (`float`)
: Ceiling for embedded images to report load or error.

`typeset_timeout` (`float`)
: Ceiling for client-side math typesetting to raise its completion flag.

`headless` (`bool`)
: Launch the browser without a window.
"""

from __future__ import annotations

from collections.abc import Mapping
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
import yaml


ENV_PREFIX = "LUOGU_SAVER_"
DEFAULT_USER_AGENT = "Uptime-Kuma"


class SaverConfig(BaseModel):
    """Runtime settings shared by the fetcher, poller, and render pipeline."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    endpoint: str = ""
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = Field(default=15.0, gt=0)

    pool_size: int = Field(default=2, ge=1)
    acquire_timeout: float | None = Field(default=None, gt=0)
    viewport_width: int = Field(default=960, gt=0)
    viewport_height: int = Field(default=800, gt=0)
    device_scale_factor: float = Field(default=2.0, gt=0)
    headless: bool = True

    navigation_timeout: float = Field(default=30.0, gt=0)
    font_timeout: float = Field(default=10.0, gt=0)
    image_timeout: float = Field(default=5.0, gt=0)
    typeset_timeout: float = Field(default=20.0, gt=0)


def _environment_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name in SaverConfig.model_fields:
        value = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is not None:
            overrides[name] = value
    return overrides


def load_config(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> SaverConfig:
    """Build a configuration from a YAML file, the environment, and overrides.

    Later sources win: file values are replaced by ``LUOGU_SAVER_*`` variables,
    which are replaced by explicit keyword overrides whose value is not ``None``.
    """
    data: dict[str, Any] = {}
    if path is not None:
        raw = Path(path).read_text(encoding="utf-8")
        loaded = yaml.safe_load(raw) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file '{path}' must contain a mapping.")
        data.update(loaded)

    data.update(_environment_overrides(os.environ if environ is None else environ))
    data.update({key: value for key, value in overrides.items() if value is not None})
    return SaverConfig.model_validate(data)


__all__ = ["DEFAULT_USER_AGENT", "ENV_PREFIX", "SaverConfig", "load_config"]
