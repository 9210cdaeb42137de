"""PlatformIO operations exposed to agents as tools."""
