"""CouchDB HTTP access."""

from couchrules.couch.client import CouchClient

__all__ = ["CouchClient"]
