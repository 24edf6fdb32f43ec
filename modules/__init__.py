"""Helper modules for the print shop application."""

__all__ = [
    "catalog",
    "image_probe",
    "pricing",
    "sanitize",
]
