"""DNS query plugins run as a chain, with matchers and command-line tools."""

__version__ = "0.1.0"