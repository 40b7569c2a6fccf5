from importlib import metadata

try:
    __version__ = metadata.version("foerdercheck")
except metadata.PackageNotFoundError:  # pragma: no cover - during local dev
    from foerdercheck import __version__
