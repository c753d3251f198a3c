"""
STORMIE package
===============

This package contains the Storm Impact Explorer (STORMIE): which storm event
types are most harmful to population health and have the greatest economic
consequences.

- The CLI entry point is in `stormie/cli.py`.
- The pipeline (prepare, aggregate, rank) is in `stormie/engine.py`.
- Dataset loading is in `stormie/loader.py`.
- Tables, charts and the DOCX report are in `stormie/report.py`.
"""

__version__ = '0.1.0'
