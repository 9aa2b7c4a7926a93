"""
Attainment engine: course-outcome and program-outcome attainment.

CO attainment for an enrolment is the weighted share of marks scored on the
assessments mapped to the CO. PO attainment for a student is the mean of the
student's CO attainments, weighted by each CO's contribution to the PO.

The engine reads from a :class:`RecordReader` (normally a snapshot), never
mutates it and never raises for missing data: insufficient data is reported
as a :class:`NoData` result.
"""

import logging
from typing import Any, List, Optional, Sequence, Tuple

from ..core.attainment import Attainment, AttainmentResult, NoData
from ..core.entities import CourseOutcome, Enrolment, ProgramOutcome, as_number
from ..core.enums import NoDataReason
from ..core.interfaces import RecordReader

logger = logging.getLogger(__name__)

FULL_WEIGHT = 100.0


def effective_weight(weight: Any) -> float:
    """Resolve a mapping weight, treating zero, absent or non-numeric as full weight."""
    value = as_number(weight)
    if value is None or value <= 0:
        return FULL_WEIGHT
    return float(value)


def mean_attainment(results: Sequence[AttainmentResult], empty_reason: NoDataReason) -> AttainmentResult:
    """Arithmetic mean of the results that carry data."""
    values = [r.percentage for r in results if isinstance(r, Attainment)]
    if not values:
        return NoData(empty_reason)
    return Attainment(sum(values) / len(values))


class AttainmentEngine:
    """Computes CO and PO attainment over one consistent view of the records."""

    def __init__(self, reader: RecordReader):
        self._reader = reader

    def compute_co_attainment(self, enrolment: Enrolment, course_outcome_id: str) -> AttainmentResult:
        """CO attainment of one enrolment.

        Each mapped assessment of the enrolment's course contributes its max
        marks and the enrolment's recorded marks, both scaled by the mapping
        weight as a fraction of 100. A missing or non-numeric mark scores zero;
        an assessment without a positive max marks value is left out.
        """
        mappings = self._reader.assessment_co_mappings_for_outcome(course_outcome_id)
        if not mappings:
            return NoData(NoDataReason.NO_MAPPING)

        weighted_max = 0.0
        weighted_score = 0.0
        for mapping in mappings:
            assessment = self._reader.find_assessment(mapping.assessment_id)
            if assessment is None:
                logger.debug("Skipping mapping %s: assessment %s not found",
                             mapping.id, mapping.assessment_id)
                continue
            if assessment.course_id != enrolment.course_id:
                continue
            max_marks = as_number(assessment.max_marks)
            if max_marks is None or max_marks <= 0:
                logger.debug("Skipping assessment %s: max marks %r is not a positive number",
                             assessment.id, assessment.max_marks)
                continue
            multiplier = effective_weight(mapping.weight) / FULL_WEIGHT
            mark = self._reader.find_mark(enrolment.id, assessment.id)
            score = as_number(mark.marks) if mark is not None else None
            weighted_max += max_marks * multiplier
            weighted_score += (score or 0) * multiplier

        if weighted_max == 0:
            return NoData(NoDataReason.NO_MAPPING)
        return Attainment((weighted_score / weighted_max) * 100)

    def compute_co_attainment_for_group(self, enrolments: Sequence[Enrolment],
                                        course_outcome_id: str) -> AttainmentResult:
        """Mean CO attainment over a group of enrolments, ignoring those without data."""
        if not enrolments:
            return NoData(NoDataReason.NO_ENROLMENT)
        results = [self.compute_co_attainment(e, course_outcome_id) for e in enrolments]
        return mean_attainment(results, NoDataReason.NO_MARKS)

    def find_latest_enrolment(self, student_id: str, course_id: str) -> Optional[Enrolment]:
        """The student's enrolment in the course that was recorded last.

        "Latest" follows the store's insertion order, not the academic year.
        """
        enrolments = [e for e in self._reader.enrolments_for_student(student_id)
                      if e.course_id == course_id]
        if not enrolments:
            return None
        return enrolments[-1]

    def compute_co_attainment_for_student(self, student_id: str,
                                          course_id: str) -> List[Tuple[CourseOutcome, AttainmentResult]]:
        """Attainment of every CO of a course for the student's latest enrolment."""
        outcomes = self._reader.course_outcomes_for_course(course_id)
        enrolment = self.find_latest_enrolment(student_id, course_id)
        if enrolment is None:
            return [(outcome, NoData(NoDataReason.NO_ENROLMENT)) for outcome in outcomes]
        return [(outcome, self.compute_co_attainment(enrolment, outcome.id)) for outcome in outcomes]

    def compute_co_attainment_for_semester(self, course_id: str,
                                           semester_id: str) -> List[Tuple[CourseOutcome, AttainmentResult]]:
        """Mean attainment of every CO of a course over its enrolments in a semester."""
        enrolments = self._reader.enrolments_for_course(course_id, semester_id)
        return [
            (outcome, self.compute_co_attainment_for_group(enrolments, outcome.id))
            for outcome in self._reader.course_outcomes_for_course(course_id)
        ]

    def compute_po_attainment_for_student(self, student_id: str, program_outcome_id: str,
                                          semester_id: Optional[str] = None) -> AttainmentResult:
        """PO attainment of a student, optionally restricted to one semester.

        A weighted mean of the student's CO attainments over the COs mapped to
        the PO. Mappings whose CO the student was never enrolled for, or whose
        CO attainment has no data, are left out entirely rather than counted
        as zero.
        """
        enrolments = self._reader.enrolments_for_student(student_id, semester_id)
        if not enrolments:
            return NoData(NoDataReason.NO_ENROLMENT)

        mappings = self._reader.co_po_mappings_for_outcome(program_outcome_id)
        if not mappings:
            return NoData(NoDataReason.NO_MAPPING)

        total_weight = 0.0
        weighted_sum = 0.0
        for mapping in mappings:
            course_outcome = self._reader.find_course_outcome(mapping.course_outcome_id)
            if course_outcome is None:
                logger.debug("Skipping mapping %s: course outcome %s not found",
                             mapping.id, mapping.course_outcome_id)
                continue
            course_enrolments = [e for e in enrolments if e.course_id == course_outcome.course_id]
            if not course_enrolments:
                continue
            attainment = self.compute_co_attainment_for_group(course_enrolments, course_outcome.id)
            if not isinstance(attainment, Attainment):
                continue
            weight = effective_weight(mapping.weight)
            total_weight += weight
            weighted_sum += attainment.percentage * weight

        if total_weight == 0:
            return NoData(NoDataReason.NO_CONTRIBUTING_WEIGHT)
        return Attainment(weighted_sum / total_weight)

    def compute_po_attainment_for_semester(self, program_id: str,
                                           semester_id: str) -> List[Tuple[ProgramOutcome, AttainmentResult]]:
        """Mean PO attainment over the program's students for one semester, per PO."""
        students = self._reader.students_for_program(program_id)
        results = []
        for outcome in self._reader.program_outcomes_for_program(program_id):
            if not students:
                results.append((outcome, NoData(NoDataReason.NO_ENROLMENT)))
                continue
            per_student = [
                self.compute_po_attainment_for_student(student.id, outcome.id, semester_id=semester_id)
                for student in students
            ]
            results.append((outcome, mean_attainment(per_student, NoDataReason.NO_CONTRIBUTING_WEIGHT)))
        return results
