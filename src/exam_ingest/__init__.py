"""Top-level package for exam question ingestion.

Provides subpackages:
- exam_ingest.common – shared regex patterns and tuned thresholds
- exam_ingest.core – immutable data models, errors and answer schema
- exam_ingest.ingest – parsing, classification, streaming and sanitizing
- exam_ingest.cli – command line entry point
"""


def _get_version() -> str:
    """Get version from importlib.metadata (installed) or fall back."""
    from importlib.metadata import PackageNotFoundError, version as pkg_version

    try:
        return pkg_version("exam-ingest")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _get_version()
