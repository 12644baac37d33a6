from __future__ import annotations
from typing import Dict, Any, Callable

from .errors import TranslationUnsupported

class _Registry:
    def __init__(self, side: str) -> None:
        self.side = side
        self._items: Dict[str, Any] = {}

    def register(self, name: str) -> Callable[[Any], Any]:
        def _inner(cls_or_obj: Any) -> Any:
            self._items[name] = cls_or_obj
            return cls_or_obj
        return _inner

    def get(self, name: str) -> Any:
        try:
            return self._items[name]
        except KeyError:
            raise TranslationUnsupported(f"no {self.side} provider registered for {name!r}") from None

    def list(self) -> Dict[str, Any]:
        return dict(self._items)

subjects = _Registry("subject")
references = _Registry("reference")

def for_side(side: str) -> _Registry:
    if side == subjects.side:
        return subjects
    if side == references.side:
        return references
    raise TranslationUnsupported(f"unknown format side {side!r}")
