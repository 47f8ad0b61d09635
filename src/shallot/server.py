"""Granian integration helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping

import msgspec
from granian import Granian

if TYPE_CHECKING:
    from .application import Shallot

logger = logging.getLogger(__name__)

_CURRENT_APP: "Shallot | None" = None


def _normalize_path(path: str | Path | None) -> Path | None:
    """Coerce ``path`` into :class:`~pathlib.Path` instances when provided."""

    if path is None:
        return None
    return path if isinstance(path, Path) else Path(path)


def _register_current_app(app: "Shallot") -> None:
    """Store ``app`` for retrieval by worker processes."""

    global _CURRENT_APP
    _CURRENT_APP = app


def _clear_current_app() -> None:
    global _CURRENT_APP
    _CURRENT_APP = None


def _current_app_loader() -> "Shallot":
    """Return the application registered for the current process."""

    if _CURRENT_APP is None:
        raise RuntimeError("no Shallot application registered for Granian")
    return _CURRENT_APP


class ServerConfig(msgspec.Struct, frozen=True):
    host: str = "127.0.0.1"
    port: int = 3000
    interface: str = "asgi"
    loop: str = "auto"
    workers: int = 1
    certificate_path: str | Path | None = None
    private_key_path: str | Path | None = None


def _granian_kwargs(cfg: ServerConfig) -> Mapping[str, Any]:
    kwargs: dict[str, Any] = {
        "address": cfg.host,
        "port": cfg.port,
        "interface": cfg.interface,
        "loop": cfg.loop,
        "workers": cfg.workers,
    }
    certificate = _normalize_path(cfg.certificate_path)
    key = _normalize_path(cfg.private_key_path)
    if (certificate is None) != (key is None):
        raise RuntimeError("TLS requires both certificate_path and private_key_path")
    if certificate is not None and key is not None:
        missing = [str(path) for path in (certificate, key) if not path.exists()]
        if missing:
            raise RuntimeError(f"TLS assets not found: {', '.join(missing)}")
        kwargs["ssl_cert"] = certificate
        kwargs["ssl_key"] = key
    return kwargs


def create_server(app: "Shallot", config: ServerConfig | None = None) -> Granian:
    cfg = config or ServerConfig()
    _register_current_app(app)
    try:
        kwargs = _granian_kwargs(cfg)
        return Granian("shallot.server:_current_app_loader", **kwargs)
    except Exception:
        _clear_current_app()
        raise


def run(app: "Shallot", config: ServerConfig | None = None) -> Granian:
    server = create_server(app, config)
    logger.debug("serving %r", app)
    try:
        server.serve(target_loader=_current_app_loader, wrap_loader=False)
    finally:
        _clear_current_app()
    return server


__all__ = ["ServerConfig", "create_server", "run"]
