"""
Core module containing the record model, result types and interfaces.
"""

from .entities import *
from .interfaces import *
from .exceptions import *
from .enums import *
from .attainment import *

__all__ = [
    # Entities
    "AbstractEntity",
    "Program",
    "Semester",
    "Course",
    "Student",
    "Enrolment",
    "ProgramOutcome",
    "CourseOutcome",
    "CoPoMapping",
    "Assessment",
    "AssessmentCoMapping",
    "Mark",
    "CourseReport",
    "ENTITY_TYPES",
    "as_number",

    # Interfaces
    "RecordReader",

    # Attainment results
    "Attainment",
    "NoData",
    "AttainmentResult",
    "ACHIEVEMENT_THRESHOLD",
    "classify",
    "format_percentage",

    # Enums
    "Collection",
    "AttainmentStatus",
    "NoDataReason",

    # Exceptions
    "ObeException",
    "ValidationError",
    "ResourceNotFoundError",
    "DuplicateEntityError",
    "PersistenceError",
    "ConfigurationError",
]
