import math

import pytest

from obe.core import (
    Assessment, AssessmentCoMapping, Attainment, AttainmentStatus, CoPoMapping, Collection,
    Course, CourseOutcome, Enrolment, Mark, NoData, NoDataReason, classify
)
from obe.persistence import RecordSnapshot
from obe.services import AttainmentEngine, effective_weight


def engine_for(store):
    return AttainmentEngine(store.snapshot())


class TestCourseOutcomeAttainment:

    def test_single_unweighted_assessment(self, store, course, enrolment, make_assessment):
        a1 = make_assessment("A1", 50)
        co1 = store.add_course_outcome(course.id, "CO1")
        store.add_assessment_co_mapping(a1.id, co1.id, 0)
        store.upsert_mark(enrolment.id, a1.id, 40)

        result = engine_for(store).compute_co_attainment(enrolment, co1.id)

        assert result == Attainment(pytest.approx(80.0))
        assert result.formatted() == "80.00%"

    def test_missing_mark_counts_toward_max(self, store, course, enrolment, make_assessment):
        a1 = make_assessment("A1", 50)
        a2 = make_assessment("A2", 50)
        co1 = store.add_course_outcome(course.id, "CO1")
        store.add_assessment_co_mapping(a1.id, co1.id, 50)
        store.add_assessment_co_mapping(a2.id, co1.id, 50)
        store.upsert_mark(enrolment.id, a1.id, 40)

        result = engine_for(store).compute_co_attainment(enrolment, co1.id)

        assert result.percentage == pytest.approx(40.0)

    def test_no_marks_is_zero_not_no_data(self, store, course, enrolment, make_assessment):
        a1 = make_assessment("A1", 50)
        co1 = store.add_course_outcome(course.id, "CO1")
        store.add_assessment_co_mapping(a1.id, co1.id, 0)

        result = engine_for(store).compute_co_attainment(enrolment, co1.id)

        assert isinstance(result, Attainment)
        assert result.percentage == 0.0
        assert result.status is AttainmentStatus.NEEDS_ATTENTION

    def test_unmapped_outcome_has_no_data(self, store, course, enrolment):
        co1 = store.add_course_outcome(course.id, "CO1")

        result = engine_for(store).compute_co_attainment(enrolment, co1.id)

        assert result == NoData(NoDataReason.NO_MAPPING)
        assert not result.has_data

    def test_zero_weights_match_full_weights(self, store, course, enrolment, make_assessment):
        a1 = make_assessment("A1", 50)
        a2 = make_assessment("A2", 100)
        co_zero = store.add_course_outcome(course.id, "CO1")
        co_full = store.add_course_outcome(course.id, "CO2")
        for assessment in (a1, a2):
            store.add_assessment_co_mapping(assessment.id, co_zero.id, 0)
            store.add_assessment_co_mapping(assessment.id, co_full.id, 100)
        store.upsert_mark(enrolment.id, a1.id, 35)
        store.upsert_mark(enrolment.id, a2.id, 64)

        engine = engine_for(store)

        assert engine.compute_co_attainment(enrolment, co_zero.id) == \
            engine.compute_co_attainment(enrolment, co_full.id)

    def test_assessments_of_other_courses_are_ignored(self, store, program, semester, course, enrolment,
                                                      make_assessment):
        other = store.add_course("CS102", "Data Structures", program.id, semester.id, 4)
        foreign = make_assessment("Foreign", 50, course_id=other.id)
        co1 = store.add_course_outcome(course.id, "CO1")
        store.add_assessment_co_mapping(foreign.id, co1.id, 0)
        store.upsert_mark(enrolment.id, foreign.id, 50)

        result = engine_for(store).compute_co_attainment(enrolment, co1.id)

        assert result == NoData(NoDataReason.NO_MAPPING)

    def test_marks_above_max_are_not_clamped(self, store, course, enrolment, make_assessment):
        a1 = make_assessment("A1", 50)
        co1 = store.add_course_outcome(course.id, "CO1")
        store.add_assessment_co_mapping(a1.id, co1.id, 0)
        store.upsert_mark(enrolment.id, a1.id, 60)

        result = engine_for(store).compute_co_attainment(enrolment, co1.id)

        assert result.percentage == pytest.approx(120.0)
        assert result.status is AttainmentStatus.ACHIEVED

    def test_dangling_assessment_contributes_nothing(self):
        enrolment = Enrolment("stu", "course-1", "sem", "2024-25", entity_id="enr")
        outcome = CourseOutcome("course-1", "CO1", entity_id="co1")
        assessment = Assessment("course-1", "A1", "exam", 10, "sem", entity_id="a1")
        snapshot = RecordSnapshot({
            Collection.ENROLMENTS: [enrolment],
            Collection.COURSE_OUTCOMES: [outcome],
            Collection.ASSESSMENTS: [assessment],
            Collection.ASSESSMENT_CO_MAPPINGS: [
                AssessmentCoMapping("deleted", "co1", 0),
                AssessmentCoMapping("a1", "co1", 0),
            ],
        })

        result = AttainmentEngine(snapshot).compute_co_attainment(enrolment, "co1")

        assert result == Attainment(0.0)

    def test_non_numeric_values_do_not_raise(self):
        enrolment = Enrolment("stu", "course-1", "sem", "2024-25", entity_id="enr")
        snapshot = RecordSnapshot({
            Collection.ENROLMENTS: [enrolment],
            Collection.ASSESSMENTS: [
                Assessment("course-1", "A1", "exam", 50, "sem", entity_id="a1"),
                Assessment("course-1", "A2", "exam", "fifty", "sem", entity_id="a2"),
                Assessment("course-1", "A3", "exam", 10, "sem", entity_id="a3"),
            ],
            Collection.ASSESSMENT_CO_MAPPINGS: [
                AssessmentCoMapping("a1", "co1", 0),
                AssessmentCoMapping("a2", "co1", 0),
                AssessmentCoMapping("a3", "co1", "heavy"),
            ],
            Collection.MARKS: [
                Mark("enr", "a1", "40", entity_id="m1"),
                Mark("enr", "a2", 50, entity_id="m2"),
                Mark("enr", "a3", None, entity_id="m3"),
            ],
        })

        result = AttainmentEngine(snapshot).compute_co_attainment(enrolment, "co1")

        # A2 is left out; A3 scores zero out of 10
        assert result.percentage == pytest.approx(40 / 60 * 100)

    def test_repeated_computation_is_identical(self, store, course, enrolment, make_assessment):
        a1 = make_assessment("A1", 30)
        co1 = store.add_course_outcome(course.id, "CO1")
        store.add_assessment_co_mapping(a1.id, co1.id, 33)
        store.upsert_mark(enrolment.id, a1.id, 17)
        engine = engine_for(store)

        first = engine.compute_co_attainment(enrolment, co1.id)
        second = engine.compute_co_attainment(enrolment, co1.id)

        assert first.percentage == second.percentage


class TestGroupAttainment:

    def test_mean_excludes_no_data(self, store, program, semester, course, enrolment, make_assessment):
        other_course = store.add_course("CS102", "Data Structures", program.id, semester.id, 4)
        a1 = make_assessment("A1", 100)
        co1 = store.add_course_outcome(course.id, "CO1")
        store.add_assessment_co_mapping(a1.id, co1.id, 0)
        store.upsert_mark(enrolment.id, a1.id, 90)
        second = store.add_student("S002", "Bob Smith", program.id)
        second_enrolment = store.add_enrolment(second.id, course.id, semester.id, "2024-25")
        store.upsert_mark(second_enrolment.id, a1.id, 50)
        stray = store.add_enrolment(second.id, other_course.id, semester.id, "2024-25")

        engine = engine_for(store)
        result = engine.compute_co_attainment_for_group([enrolment, second_enrolment, stray], co1.id)

        assert result.percentage == pytest.approx(70.0)

    def test_empty_group_has_no_data(self, store, course):
        co1 = store.add_course_outcome(course.id, "CO1")

        result = engine_for(store).compute_co_attainment_for_group([], co1.id)

        assert result == NoData(NoDataReason.NO_ENROLMENT)

    def test_group_without_any_attainment(self, store, course, enrolment):
        co1 = store.add_course_outcome(course.id, "CO1")

        result = engine_for(store).compute_co_attainment_for_group([enrolment], co1.id)

        assert result == NoData(NoDataReason.NO_MARKS)

    def test_latest_enrolment_is_last_inserted(self, store, student, course, semester):
        later_year = store.add_enrolment(student.id, course.id, semester.id, "2025-26")
        earlier_year = store.add_enrolment(student.id, course.id, semester.id, "2023-24")

        latest = engine_for(store).find_latest_enrolment(student.id, course.id)

        assert latest.id == earlier_year.id
        assert latest.id != later_year.id

    def test_latest_enrolment_missing(self, store, student, course):
        assert engine_for(store).find_latest_enrolment(student.id, course.id) is None

    def test_student_view_uses_latest_enrolment(self, store, student, course, semester, make_assessment):
        a1 = make_assessment("A1", 10)
        co1 = store.add_course_outcome(course.id, "CO1")
        store.add_assessment_co_mapping(a1.id, co1.id, 0)
        first = store.add_enrolment(student.id, course.id, semester.id, "2023-24")
        repeat = store.add_enrolment(student.id, course.id, semester.id, "2024-25")
        store.upsert_mark(first.id, a1.id, 3)
        store.upsert_mark(repeat.id, a1.id, 9)

        [(outcome, result)] = engine_for(store).compute_co_attainment_for_student(student.id, course.id)

        assert outcome.id == co1.id
        assert result.percentage == pytest.approx(90.0)


class TestProgramOutcomeAttainment:

    def _outcomes(self, store, program, course, enrolment, make_assessment):
        a1 = make_assessment("A1", 50)
        co1 = store.add_course_outcome(course.id, "CO1")
        co2 = store.add_course_outcome(course.id, "CO2")
        store.add_assessment_co_mapping(a1.id, co1.id, 0)
        store.upsert_mark(enrolment.id, a1.id, 40)
        po1 = store.add_program_outcome(program.id, "PO1")
        return co1, co2, po1

    def test_outcome_without_data_is_skipped_not_zero(self, store, program, course, student, enrolment,
                                                      make_assessment):
        co1, co2, po1 = self._outcomes(store, program, course, enrolment, make_assessment)
        store.add_co_po_mapping(co1.id, po1.id, 100)
        store.add_co_po_mapping(co2.id, po1.id, 0)

        result = engine_for(store).compute_po_attainment_for_student(student.id, po1.id)

        assert result.percentage == pytest.approx(80.0)

    def test_weighted_mean_of_outcomes(self, store, program, course, student, enrolment, make_assessment):
        co1, co2, po1 = self._outcomes(store, program, course, enrolment, make_assessment)
        a2 = make_assessment("A2", 20)
        store.add_assessment_co_mapping(a2.id, co2.id, 0)
        store.upsert_mark(enrolment.id, a2.id, 8)
        store.add_co_po_mapping(co1.id, po1.id, 75)
        store.add_co_po_mapping(co2.id, po1.id, 25)

        result = engine_for(store).compute_po_attainment_for_student(student.id, po1.id)

        # (80 * 75 + 40 * 25) / 100
        assert result.percentage == pytest.approx(70.0)

    def test_unset_weight_counts_as_full_next_to_explicit(self, store, program, course, student, enrolment,
                                                          make_assessment):
        co1, co2, po1 = self._outcomes(store, program, course, enrolment, make_assessment)
        a2 = make_assessment("A2", 20)
        store.add_assessment_co_mapping(a2.id, co2.id, 0)
        store.upsert_mark(enrolment.id, a2.id, 8)
        store.add_co_po_mapping(co1.id, po1.id, 0)
        store.add_co_po_mapping(co2.id, po1.id, 50)

        result = engine_for(store).compute_po_attainment_for_student(student.id, po1.id)

        # (80 * 100 + 40 * 50) / 150
        assert result.percentage == pytest.approx(10000 / 150)

    def test_unmapped_program_outcome(self, store, program, student, enrolment):
        po1 = store.add_program_outcome(program.id, "PO1")

        result = engine_for(store).compute_po_attainment_for_student(student.id, po1.id)

        assert result == NoData(NoDataReason.NO_MAPPING)

    def test_student_without_enrolments(self, store, program, course, student):
        po1 = store.add_program_outcome(program.id, "PO1")

        result = engine_for(store).compute_po_attainment_for_student(student.id, po1.id)

        assert result == NoData(NoDataReason.NO_ENROLMENT)

    def test_no_contributing_outcomes(self, store, program, semester, course, student, enrolment):
        other = store.add_course("CS102", "Data Structures", program.id, semester.id, 4)
        foreign_co = store.add_course_outcome(other.id, "CO1")
        po1 = store.add_program_outcome(program.id, "PO1")
        store.add_co_po_mapping(foreign_co.id, po1.id, 100)

        result = engine_for(store).compute_po_attainment_for_student(student.id, po1.id)

        assert result == NoData(NoDataReason.NO_CONTRIBUTING_WEIGHT)

    def test_semester_filter(self, store, program, semester, course, student, enrolment, make_assessment):
        co1, _, po1 = self._outcomes(store, program, course, enrolment, make_assessment)
        store.add_co_po_mapping(co1.id, po1.id, 100)
        later = store.add_semester("Semester 2", 2)
        engine = engine_for(store)

        assert engine.compute_po_attainment_for_student(student.id, po1.id, semester_id=semester.id) == \
            Attainment(pytest.approx(80.0))
        assert engine.compute_po_attainment_for_student(student.id, po1.id, semester_id=later.id) == \
            NoData(NoDataReason.NO_ENROLMENT)

    def test_dangling_course_outcome_is_skipped(self):
        enrolment = Enrolment("stu", "course-1", "sem", "2024-25", entity_id="enr")
        snapshot = RecordSnapshot({
            Collection.COURSES: [Course("C1", "Course", "prog", "sem", 3, entity_id="course-1")],
            Collection.ENROLMENTS: [enrolment],
            Collection.CO_PO_MAPPINGS: [CoPoMapping("deleted-co", "po1", 100)],
        })

        result = AttainmentEngine(snapshot).compute_po_attainment_for_student("stu", "po1")

        assert result == NoData(NoDataReason.NO_CONTRIBUTING_WEIGHT)

    def test_semester_report_excludes_students_without_data(self, store, program, semester, course,
                                                           student, enrolment, make_assessment):
        a1 = make_assessment("A1", 100)
        co1 = store.add_course_outcome(course.id, "CO1")
        store.add_assessment_co_mapping(a1.id, co1.id, 0)
        store.upsert_mark(enrolment.id, a1.id, 70)
        po1 = store.add_program_outcome(program.id, "PO1")
        store.add_co_po_mapping(co1.id, po1.id, 0)
        store.add_student("S002", "Bob Smith", program.id)

        [(outcome, result)] = engine_for(store).compute_po_attainment_for_semester(program.id, semester.id)

        assert outcome.id == po1.id
        assert result.percentage == pytest.approx(70.0)

    def test_semester_report_without_students(self, store, program, semester):
        po1 = store.add_program_outcome(program.id, "PO1")

        [(outcome, result)] = engine_for(store).compute_po_attainment_for_semester(program.id, semester.id)

        assert result == NoData(NoDataReason.NO_ENROLMENT)


class TestWeightsAndStatus:

    @pytest.mark.parametrize("weight", [0, None, -5, math.nan, "n/a"])
    def test_unset_weights_mean_full_weight(self, weight):
        assert effective_weight(weight) == 100.0

    def test_explicit_weight_kept(self):
        assert effective_weight(40) == 40.0

    def test_status_boundary(self):
        assert classify(60.0) is AttainmentStatus.ACHIEVED
        assert classify(59.99) is AttainmentStatus.NEEDS_ATTENTION
        assert Attainment(60.0).status is AttainmentStatus.ACHIEVED

    def test_no_data_is_not_zero(self):
        assert NoData(NoDataReason.NO_MARKS) != Attainment(0.0)
        assert NoData(NoDataReason.NO_MARKS).formatted() == "—"
