"""Command-line interface for httpayload (``httpayload plan ...``)."""
