"""
OBE Portal: Outcome Based Education bookkeeping and attainment reporting.

Records programs, courses, students, enrolments, outcome definitions, outcome
weight mappings, assessments and marks, and derives course-outcome and
program-outcome attainment reports from them.
"""

__version__ = "1.0.0"
__author__ = "OBE Portal Development Team"
__description__ = "Outcome Based Education bookkeeping and attainment reporting"
