"""
Core interfaces for the OBE portal.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from .enums import Collection
from .entities import (
    AbstractEntity, Assessment, AssessmentCoMapping, CoPoMapping, Course, CourseOutcome,
    Enrolment, Mark, ProgramOutcome, Student
)


class RecordReader(ABC):
    """Read-only access to the records of the store.

    Listings are returned in insertion order; the attainment engine relies on
    that order to pick a student's latest enrolment in a course.
    """

    @abstractmethod
    def list_all(self, collection: Collection) -> Sequence[AbstractEntity]:
        """List every record of a collection in insertion order."""
        pass

    @abstractmethod
    def find_by_id(self, collection: Collection, entity_id: str) -> Optional[AbstractEntity]:
        """Find a record by ID, or ``None`` when it does not resolve."""
        pass

    def find_assessment(self, assessment_id: str) -> Optional[Assessment]:
        return self.find_by_id(Collection.ASSESSMENTS, assessment_id)

    def find_course(self, course_id: str) -> Optional[Course]:
        return self.find_by_id(Collection.COURSES, course_id)

    def find_course_outcome(self, course_outcome_id: str) -> Optional[CourseOutcome]:
        return self.find_by_id(Collection.COURSE_OUTCOMES, course_outcome_id)

    def find_student(self, student_id: str) -> Optional[Student]:
        return self.find_by_id(Collection.STUDENTS, student_id)

    def find_mark(self, enrolment_id: str, assessment_id: str) -> Optional[Mark]:
        """Find the mark recorded for an (enrolment, assessment) pair."""
        for mark in self.list_all(Collection.MARKS):
            if mark.enrolment_id == enrolment_id and mark.assessment_id == assessment_id:
                return mark
        return None

    def assessment_co_mappings_for_outcome(self, course_outcome_id: str) -> List[AssessmentCoMapping]:
        return [m for m in self.list_all(Collection.ASSESSMENT_CO_MAPPINGS)
                if m.course_outcome_id == course_outcome_id]

    def co_po_mappings_for_outcome(self, program_outcome_id: str) -> List[CoPoMapping]:
        return [m for m in self.list_all(Collection.CO_PO_MAPPINGS)
                if m.program_outcome_id == program_outcome_id]

    def enrolments_for_student(self, student_id: str, semester_id: Optional[str] = None) -> List[Enrolment]:
        return [e for e in self.list_all(Collection.ENROLMENTS)
                if e.student_id == student_id and (semester_id is None or e.semester_id == semester_id)]

    def enrolments_for_course(self, course_id: str, semester_id: Optional[str] = None) -> List[Enrolment]:
        return [e for e in self.list_all(Collection.ENROLMENTS)
                if e.course_id == course_id and (semester_id is None or e.semester_id == semester_id)]

    def course_outcomes_for_course(self, course_id: str) -> List[CourseOutcome]:
        return [o for o in self.list_all(Collection.COURSE_OUTCOMES) if o.course_id == course_id]

    def program_outcomes_for_program(self, program_id: str) -> List[ProgramOutcome]:
        return [o for o in self.list_all(Collection.PROGRAM_OUTCOMES) if o.program_id == program_id]

    def students_for_program(self, program_id: str) -> List[Student]:
        return [s for s in self.list_all(Collection.STUDENTS) if s.program_id == program_id]

    def courses_for_program(self, program_id: str) -> List[Course]:
        return [c for c in self.list_all(Collection.COURSES) if c.program_id == program_id]

    def assessments_for_course(self, course_id: str) -> List[Assessment]:
        return [a for a in self.list_all(Collection.ASSESSMENTS) if a.course_id == course_id]
