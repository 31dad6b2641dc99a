"""uistable — UI-stability detection via tree fingerprints."""

__version__ = "0.1.0"
