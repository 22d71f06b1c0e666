"""Core constants used across SeisCloud modules.

This module centralizes key layout names and buffer defaults.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

PROPERTIES_OBJECT_NAME = "JscFileProperties.json"
PROPERTIES_FORMAT_VERSION = "2020.1"
TRACES_NAMESPACE = "Traces"
HEADERS_NAMESPACE = "Headers"
FRAME_NAMESPACES = (TRACES_NAMESPACE, HEADERS_NAMESPACE)
TRACE_COUNT_METADATA_KEY = "traceCount"
DATASET_PATH_SUFFIX = ".js"
DEFAULT_READ_CHUNK_SIZE = 16384
GRID_DIMENSIONS = 4
SAMPLE_AXIS = 0
TRACE_AXIS = 1
FRAME_AXIS = 2
VOLUME_AXIS = 3
HEADER_WORD_BYTES = 4
BIG_ENDIAN = "BIG_ENDIAN"
LITTLE_ENDIAN = "LITTLE_ENDIAN"
SUPPORTED_BYTE_ORDERS = (BIG_ENDIAN, LITTLE_ENDIAN)
LOCAL_METADATA_SUFFIX = ".metadata.json"
YAML_SUFFIXES = (".yaml", ".yml")
