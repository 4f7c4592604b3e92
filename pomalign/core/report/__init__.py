from .comparator import ProjectComparator
from .models import GAV, ModuleReport, PMEReport
from .store import read_json_report, read_previous_report, write_json_report, write_text_report

__all__ = [
    "GAV",
    "ModuleReport",
    "PMEReport",
    "ProjectComparator",
    "read_json_report",
    "read_previous_report",
    "write_json_report",
    "write_text_report",
]
