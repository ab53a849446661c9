"""Exception types for opencode-bundle.

Filesystem failures while writing a bundle are never wrapped: they reach the
caller as the ``OSError`` raised by the failing call. These types only cover
building a bundle from user input and reading user configuration.
"""


class BundleError(Exception):
    """Base exception for all opencode-bundle errors."""


class ManifestError(BundleError):
    """A bundle manifest or plugin source tree could not be turned into a bundle."""


class ConfigError(BundleError):
    """Invalid or unreadable user configuration."""
