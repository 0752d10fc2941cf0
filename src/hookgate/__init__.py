"""hookgate — webhook ingress filter and event router for WAHA callbacks."""

__version__ = "1.0.0"
