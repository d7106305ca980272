"""
Module: ingest.config

Purpose:
    Configuration dataclasses for the streaming extractor and the
    output sanitizer.

Key Classes:
    - StreamConfig: Event emission switches and error preview size
    - SanitizeConfig: Logging behaviour of the sanitizer

Used By:
    - ingest.streaming: Uses StreamConfig
    - ingest.sanitize: Uses SanitizeConfig
"""

from dataclasses import dataclass, field

from exam_ingest.common.thresholds import (
    SANITIZE_THRESHOLDS,
    STREAMING_THRESHOLDS,
    SanitizeThresholds,
    StreamingThresholds,
)


@dataclass(frozen=True)
class StreamConfig:
    """
    Configuration for the streaming incremental extractor.

    Attributes:
        emit_status: Send a status event before the first chunk (default True)
        emit_text: Forward raw chunks as text progress events (default False)
        validate_answers: Check final answers against the answer schema (default True)
        thresholds: Preview limits for error events
    """
    emit_status: bool = True
    emit_text: bool = False
    validate_answers: bool = True
    thresholds: StreamingThresholds = field(default_factory=lambda: STREAMING_THRESHOLDS)


@dataclass(frozen=True)
class SanitizeConfig:
    """
    Configuration for the output sanitizer.

    Attributes:
        log_dangerous: Log a warning when dangerous markup is seen (default True)
        thresholds: Preview size used in log messages
    """
    log_dangerous: bool = True
    thresholds: SanitizeThresholds = field(default_factory=lambda: SANITIZE_THRESHOLDS)
