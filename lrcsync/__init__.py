"Synchronized lyrics sidecar fetcher for local music libraries."

from importlib import metadata

__all__ = ["__version__"]


def __getattr__(name: str) -> str:
    if name == "__version__":
        try:
            return metadata.version("lrcsync")
        except metadata.PackageNotFoundError:  # pragma: no cover - running from a source checkout
            return "0.0.0"
    raise AttributeError(name)
