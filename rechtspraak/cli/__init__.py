"""Command-line tools for the Rechtspraak assistant.

- ``python -m rechtspraak.cli ingest|ask|search|stats``
"""
