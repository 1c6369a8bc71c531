"""ghdepup: track GitHub-hosted dependency pins by tag."""

__version__ = "0.3.0"
