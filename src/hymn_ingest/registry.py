from .exceptions import UnsupportedSourceError
from .sources.base import SourceAdapter
from .sources.hymnstogod import HymnsToGodAdapter
from .sources.pateys import PateysAdapter
from .sources.timeless_truths import TimelessTruthsAdapter

_ADAPTERS: list[type[SourceAdapter]] = [
    HymnsToGodAdapter,
    PateysAdapter,
    TimelessTruthsAdapter,
]


def source_names() -> list[str]:
    return [cls.name for cls in _ADAPTERS]


def get_source(name: str, public_domain_only: bool = True) -> SourceAdapter:
    """Return an instantiated adapter for the given source name.

    Raises UnsupportedSourceError if no adapter matches.
    """
    for cls in _ADAPTERS:
        if cls.name == name:
            adapter = cls()
            # Only sources that mark licensing on the page filter by it
            if hasattr(adapter, "public_domain_only"):
                adapter.public_domain_only = public_domain_only
            return adapter
    raise UnsupportedSourceError(name)
