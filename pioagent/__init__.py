"""pioagent: PlatformIO operations exposed as agent tools."""

__version__ = "0.1.0"
