"""Office IT inventory service: items, serial numbers, catalog, restock requests and audit trail."""

__version__ = "1.0.0"
