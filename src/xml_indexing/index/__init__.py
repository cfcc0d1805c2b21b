"""Index building and caching package."""

from .cache import IndexCache, document_identity
from .compat import (
    EXPECTED_OFFSETS,
    KNOWN_FAULTY_OFFSETS,
    SELF_TEST_FIXTURE,
    SELF_TEST_ROOT,
    blank_prolog,
    classify_fixture_index,
    locate_tag_start,
)
from .models import (
    NUMERIC_DIMENSION,
    AttributeIndex,
    DimensionIndex,
    DocumentIdentity,
    IndexEntry,
    NumericIndex,
    Region,
    ScanResult,
)
from .policies import (
    AttributePolicy,
    IndexingPolicy,
    NamespacePolicy,
    NumericPolicy,
    policy_for_dimension,
)
from .scanner import parser_needs_offset_fix, scan_document, scope_path_for
from .store import INDEX_SCHEMA_VERSION, IndexStore, decode_entry, encode_entry

__all__ = [
    "AttributeIndex",
    "AttributePolicy",
    "DimensionIndex",
    "DocumentIdentity",
    "EXPECTED_OFFSETS",
    "INDEX_SCHEMA_VERSION",
    "IndexCache",
    "IndexEntry",
    "IndexStore",
    "IndexingPolicy",
    "KNOWN_FAULTY_OFFSETS",
    "NUMERIC_DIMENSION",
    "NamespacePolicy",
    "NumericIndex",
    "NumericPolicy",
    "Region",
    "SELF_TEST_FIXTURE",
    "SELF_TEST_ROOT",
    "ScanResult",
    "blank_prolog",
    "classify_fixture_index",
    "decode_entry",
    "document_identity",
    "encode_entry",
    "locate_tag_start",
    "parser_needs_offset_fix",
    "policy_for_dimension",
    "scan_document",
    "scope_path_for",
]
