"""bootctl — subsystem bootstrap, identity resolution, and security alert routing."""

__version__ = "0.1.0"
