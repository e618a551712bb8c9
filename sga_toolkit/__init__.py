"""SGA Toolkit - Extract Relic SGA archives and read Relic Chunky files."""

__version__ = "0.1.0"
