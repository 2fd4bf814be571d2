"""ossinventory: fingerprint build workspaces and sync OSS inventories."""

__version__ = "0.3.0"
