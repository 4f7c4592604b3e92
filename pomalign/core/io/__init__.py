from .document import PROVENANCE_MARKER, PomDocument, determine_eol, with_provenance
from .pom_io import PomIO, ScanResult, relocate_references, temporary_path
from .projection import project_model

__all__ = [
    "PROVENANCE_MARKER",
    "PomDocument",
    "PomIO",
    "ScanResult",
    "determine_eol",
    "project_model",
    "relocate_references",
    "temporary_path",
    "with_provenance",
]
