"""
Enumerations and constants for the OBE portal.
"""

from enum import Enum


class Collection(Enum):
    """Record collections held by the store, keyed as in the data file."""
    PROGRAMS = "programs"
    SEMESTERS = "semesters"
    COURSES = "courses"
    STUDENTS = "students"
    ENROLMENTS = "enrolments"
    PROGRAM_OUTCOMES = "programOutcomes"
    COURSE_OUTCOMES = "courseOutcomes"
    CO_PO_MAPPINGS = "coPoMappings"
    ASSESSMENTS = "assessments"
    ASSESSMENT_CO_MAPPINGS = "assessmentCoMappings"
    MARKS = "marks"
    COURSE_REPORTS = "courseReports"


class AttainmentStatus(Enum):
    """Classification of a computed attainment percentage."""
    ACHIEVED = "Achieved"
    NEEDS_ATTENTION = "Needs Attention"


class NoDataReason(Enum):
    """Why an attainment could not be computed."""
    NO_MAPPING = "no_mapping"
    NO_MARKS = "no_marks"
    NO_ENROLMENT = "no_enrolment"
    NO_CONTRIBUTING_WEIGHT = "no_contributing_weight"

    @property
    def label(self) -> str:
        return _NO_DATA_LABELS[self]


_NO_DATA_LABELS = {
    NoDataReason.NO_MAPPING: "No assessment mapping",
    NoDataReason.NO_MARKS: "No marks uploaded",
    NoDataReason.NO_ENROLMENT: "No matching enrolment",
    NoDataReason.NO_CONTRIBUTING_WEIGHT: "No contributing CO attainment",
}
