"""Scan2Go: QR meal-voucher verification service."""

__version__ = "1.0.0"
