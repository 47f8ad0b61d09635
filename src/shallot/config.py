"""Application configuration objects."""

from __future__ import annotations

import os
from typing import Mapping

from msgspec import Struct

ENV_VARIABLE = "SHALLOT_ENV"


class AppConfig(Struct, frozen=True):
    """Typed configuration for a :class:`~shallot.application.Shallot` instance."""

    env: str = "development"
    keys: tuple[str, ...] = ()
    proxy: bool = False
    subdomain_offset: int = 2
    proxy_ip_header: str = "X-Forwarded-For"
    max_ips_count: int = 0
    silent: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: object) -> "AppConfig":
        """Build a configuration whose ``env`` comes from ``SHALLOT_ENV`` when set."""

        source = os.environ if environ is None else environ
        env = source.get(ENV_VARIABLE) or "development"
        values: dict[str, object] = {"env": env}
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]


class AppSummary(Struct, frozen=True):
    """Inspection view of the settings that describe an application."""

    subdomain_offset: int
    proxy: bool
    env: str
