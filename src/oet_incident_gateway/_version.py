"""Package version, read from the installed distribution metadata."""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path


def get_version_from_pyproject() -> str:
    """Return the installed version, or the one in a source checkout's pyproject.toml.

    Raises:
        RuntimeError: If neither source is available.
    """
    try:
        return get_version("oet-incident-gateway")
    except PackageNotFoundError:
        import tomllib

        pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
        if not pyproject.exists():
            raise RuntimeError("Could not determine package version") from None
        with pyproject.open("rb") as f:
            return str(tomllib.load(f)["project"]["version"])


__version__ = get_version_from_pyproject()

__all__ = ["__version__"]
