"""
Report service: the attainment and bookkeeping reports shown to users.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.attainment import Attainment, AttainmentResult
from ..core.entities import AbstractEntity
from ..core.enums import Collection, NoDataReason
from ..persistence.record_store import RecordStore
from ..persistence.snapshot import RecordSnapshot
from .attainment_service import AttainmentEngine


@dataclass
class OutcomeReportRow:
    """One outcome's line in an attainment report."""
    outcome_id: str
    code: str
    description: str
    result: AttainmentResult
    no_data_label: Optional[str] = None

    @property
    def attainment(self) -> str:
        return self.result.formatted()

    @property
    def status(self) -> str:
        if isinstance(self.result, Attainment):
            return self.result.status.value
        return self.no_data_label or self.result.reason.label

    def to_dict(self) -> Dict[str, Any]:
        return {
            'outcomeId': self.outcome_id,
            'code': self.code,
            'description': self.description,
            'percentage': self.result.percentage if isinstance(self.result, Attainment) else None,
            'attainment': self.attainment,
            'status': self.status,
            'noDataReason': None if isinstance(self.result, Attainment) else self.result.reason.value,
        }


@dataclass
class OutcomeReport:
    """An attainment report: one row per outcome, or a message when it cannot be produced."""
    title: str
    rows: List[OutcomeReportRow] = field(default_factory=list)
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'rows': [row.to_dict() for row in self.rows],
            'message': self.message,
        }


@dataclass
class MappingMatrix:
    """CO x PO grid of configured contribution weights for a program."""
    program_name: str
    program_outcome_codes: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'programName': self.program_name,
            'programOutcomes': self.program_outcome_codes,
            'rows': self.rows,
            'message': self.message,
        }


@dataclass
class MarksSheet:
    """Enrolment x assessment grid of recorded marks for a course."""
    course_code: str
    assessments: List[Dict[str, Any]] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'courseCode': self.course_code,
            'assessments': self.assessments,
            'rows': self.rows,
            'message': self.message,
        }


def _outcome_rows(results: Sequence[Tuple[AbstractEntity, AttainmentResult]],
                  no_data_label: Optional[str] = None) -> List[OutcomeReportRow]:
    return [
        OutcomeReportRow(outcome_id=outcome.id, code=outcome.code, description=outcome.description,
                         result=result, no_data_label=no_data_label)
        for outcome, result in results
    ]


class ReportService:
    """Builds reports from a fresh snapshot of the store on every call."""

    def __init__(self, store: RecordStore):
        self._store = store

    def _snapshot(self) -> Tuple[RecordSnapshot, AttainmentEngine]:
        snapshot = self._store.snapshot()
        return snapshot, AttainmentEngine(snapshot)

    def co_student_report(self, student_id: str, course_id: str) -> OutcomeReport:
        """CO attainment of one student in one course, from the latest enrolment."""
        snapshot, engine = self._snapshot()
        report = OutcomeReport(title="Course outcome attainment")
        if engine.find_latest_enrolment(student_id, course_id) is None:
            report.message = "No enrolment found for the selected student and course."
            return report
        if not snapshot.course_outcomes_for_course(course_id):
            report.message = "No course outcomes configured for the selected course."
            return report
        report.rows = _outcome_rows(engine.compute_co_attainment_for_student(student_id, course_id))
        return report

    def co_semester_report(self, course_id: str, semester_id: str) -> OutcomeReport:
        """Average CO attainment over a course's enrolments in a semester."""
        snapshot, engine = self._snapshot()
        report = OutcomeReport(title="Average course outcome attainment")
        if not snapshot.enrolments_for_course(course_id, semester_id):
            report.message = "No enrolments found for the selected course and semester."
            return report
        if not snapshot.course_outcomes_for_course(course_id):
            report.message = "No course outcomes configured for the selected course."
            return report
        report.rows = _outcome_rows(
            engine.compute_co_attainment_for_semester(course_id, semester_id),
            no_data_label=NoDataReason.NO_MARKS.label,
        )
        return report

    def po_student_report(self, student_id: str) -> OutcomeReport:
        """PO attainment of one student across every semester."""
        snapshot, engine = self._snapshot()
        report = OutcomeReport(title="Program outcome attainment")
        student = snapshot.find_student(student_id)
        if student is None:
            report.message = "Student not found."
            return report
        outcomes = snapshot.program_outcomes_for_program(student.program_id)
        if not outcomes:
            report.message = "No program outcomes configured for the student's program."
            return report
        results = [(outcome, engine.compute_po_attainment_for_student(student.id, outcome.id))
                   for outcome in outcomes]
        report.rows = _outcome_rows(results, no_data_label="No contributing CO attainment")
        return report

    def po_semester_report(self, program_id: str, semester_id: str) -> OutcomeReport:
        """Average PO attainment over a program's students for one semester."""
        snapshot, engine = self._snapshot()
        report = OutcomeReport(title="Average program outcome attainment")
        if not snapshot.program_outcomes_for_program(program_id):
            report.message = "No program outcomes configured for the selected program."
            return report
        report.rows = _outcome_rows(
            engine.compute_po_attainment_for_semester(program_id, semester_id),
            no_data_label="No contributing data",
        )
        return report

    def po_co_matrix(self, program_id: str) -> MappingMatrix:
        """Grid of CO -> PO weights for the courses of a program."""
        snapshot = self._store.snapshot()
        program = snapshot.find_by_id(Collection.PROGRAMS, program_id)
        if program is None:
            return MappingMatrix(program_name="", message="Program not found.")
        matrix = MappingMatrix(program_name=program.name)
        program_outcomes = snapshot.program_outcomes_for_program(program_id)
        course_ids = {course.id for course in snapshot.courses_for_program(program_id)}
        course_outcomes = [o for o in snapshot.list_all(Collection.COURSE_OUTCOMES)
                           if o.course_id in course_ids]
        if not program_outcomes or not course_outcomes:
            matrix.message = "Add course outcomes and program outcomes to view the mapping."
            return matrix

        weights = {}
        for mapping in snapshot.list_all(Collection.CO_PO_MAPPINGS):
            weights[(mapping.course_outcome_id, mapping.program_outcome_id)] = mapping.weight

        matrix.program_outcome_codes = [po.code for po in program_outcomes]
        for outcome in course_outcomes:
            course = snapshot.find_course(outcome.course_id)
            matrix.rows.append({
                'courseOutcome': outcome.code,
                'courseCode': course.code if course else None,
                'weights': [weights.get((outcome.id, po.id)) for po in program_outcomes],
            })
        return matrix

    def marks_sheet(self, course_id: str) -> MarksSheet:
        """Marks recorded for every enrolment of a course, by assessment."""
        snapshot = self._store.snapshot()
        course = snapshot.find_course(course_id)
        sheet = MarksSheet(course_code=course.code if course else "")
        assessments = snapshot.assessments_for_course(course_id)
        if not assessments:
            sheet.message = "No assessments configured for the selected course."
            return sheet
        enrolments = snapshot.enrolments_for_course(course_id)
        if not enrolments:
            sheet.message = "No student enrolments found for the selected course."
            return sheet

        sheet.assessments = [
            {'id': a.id, 'name': a.name, 'maxMarks': a.max_marks} for a in assessments
        ]
        for enrolment in enrolments:
            student = snapshot.find_student(enrolment.student_id)
            marks = []
            for assessment in assessments:
                mark = snapshot.find_mark(enrolment.id, assessment.id)
                marks.append(mark.marks if mark else None)
            sheet.rows.append({
                'enrolmentId': enrolment.id,
                'studentId': student.student_id if student else None,
                'studentName': student.name if student else None,
                'marks': marks,
            })
        return sheet
