"""Template namespaces shared by per-request facades."""

from __future__ import annotations

from types import FunctionType, MethodType
from typing import Any


class Template:
    """Application-level attribute namespace.

    Every application owns one template per facade kind. Values assigned here
    become visible on every facade delegating to the template, including the
    ones created before the assignment.
    """

    def __init__(self, **attributes: Any) -> None:
        self.__dict__.update(attributes)

    def __contains__(self, name: str) -> bool:
        return name in self.__dict__

    def __repr__(self) -> str:
        names = ", ".join(sorted(self.__dict__))
        return f"Template({names})"


class Delegating:
    """Per-request object that falls back to a :class:`Template` on lookup misses.

    Own attributes live in the instance ``__dict__`` so writes never reach the
    template. Plain functions stored on the template are bound to the
    per-request object when read through it.
    """

    def __init__(self, template: Template) -> None:
        self.__dict__["_template"] = template

    @property
    def template(self) -> Template:
        return self.__dict__["_template"]

    def __getattr__(self, name: str) -> Any:
        template = self.__dict__.get("_template")
        if template is None or name.startswith("__"):
            raise AttributeError(name)
        try:
            value = template.__dict__[name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}") from None
        if isinstance(value, FunctionType):
            return MethodType(value, self)
        return value


__all__ = ["Delegating", "Template"]
