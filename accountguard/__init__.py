"""accountguard - account lifecycle and credential issuance service."""

__version__ = "0.1.0"
