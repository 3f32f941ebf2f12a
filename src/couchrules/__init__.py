"""couchrules: eligibility rules deployed as CouchDB validation functions."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("couchrules")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
