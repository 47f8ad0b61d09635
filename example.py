"""Minimal Shallot application.

Run ``python example.py`` to serve it on ``127.0.0.1:3000`` with granian. Set
``SHALLOT_ENV`` to change the reported environment and ``SHALLOT_PORT`` to pick
another port.
"""

from __future__ import annotations

import logging
import os
import time

from shallot import AppConfig, Shallot


def create_app() -> Shallot:
    """Build the demo application with a timing layer and two endpoints."""

    app = Shallot(AppConfig.from_env())

    async def timing(ctx, next):
        started = time.perf_counter()
        await next()
        elapsed = (time.perf_counter() - started) * 1000
        ctx.set("X-Response-Time", f"{elapsed:.2f}ms")

    async def endpoints(ctx, next):
        if ctx.path == "/":
            ctx.body = {"app": app.to_json(), "subdomains": ctx.subdomains}
            return
        if ctx.path == "/fail":
            ctx.throw(418, "short and stout")
        await next()

    app.use(timing).use(endpoints)
    return app


if __name__ == "__main__":  # pragma: no cover - manual entry point
    logging.basicConfig(level=logging.DEBUG)
    create_app().listen(port=int(os.getenv("SHALLOT_PORT", "3000")))
