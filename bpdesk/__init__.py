"""bpdesk: blueprint data-entry tool backed by a PocketBase collection."""

__version__ = "0.1.0"
