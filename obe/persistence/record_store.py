"""
Record store: validated writes, referential-integrity checks and JSON file
persistence.
"""

import json
import logging
import os
import tempfile
import threading
from typing import Any, Dict, List, Optional, Tuple

from ..core.entities import (
    ENTITY_TYPES, AbstractEntity, Assessment, AssessmentCoMapping, CoPoMapping, Course,
    CourseOutcome, CourseReport, Enrolment, Mark, Program, ProgramOutcome, Semester, Student, as_number
)
from ..core.enums import Collection
from ..core.exceptions import (
    ConfigurationError, DuplicateEntityError, PersistenceError, ResourceNotFoundError,
    ValidationError
)
from ..core.interfaces import RecordReader
from .snapshot import RecordSnapshot

logger = logging.getLogger(__name__)


def _text(value: Any) -> str:
    """Normalize a free-text input: ``None`` becomes empty, whitespace is stripped."""
    if value is None:
        return ""
    return str(value).strip()


class RecordStore(RecordReader):
    """In-memory record store.

    A single writer mutates the collections under a lock; every mutation is
    validated first and persisted afterwards. Readers should take a
    :meth:`snapshot` rather than hold on to the store.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._data: Dict[Collection, List[AbstractEntity]] = {c: [] for c in Collection}

    # Read access

    def list_all(self, collection: Collection) -> Tuple[AbstractEntity, ...]:
        with self._lock:
            return tuple(self._data[collection])

    def find_by_id(self, collection: Collection, entity_id: str) -> Optional[AbstractEntity]:
        with self._lock:
            for record in self._data[collection]:
                if record.id == entity_id:
                    return record
            return None

    def snapshot(self) -> RecordSnapshot:
        """Take an immutable snapshot of every collection."""
        with self._lock:
            return RecordSnapshot(self._data)

    def get_all(self) -> Dict[str, List[Dict[str, Any]]]:
        """Serialize every collection."""
        with self._lock:
            return {c.value: [r.to_dict() for r in self._data[c]] for c in Collection}

    def list(self, collection_name: str) -> List[Dict[str, Any]]:
        """Serialize one collection by its data file key."""
        collection = self._resolve_collection(collection_name)
        with self._lock:
            return [r.to_dict() for r in self._data[collection]]

    @staticmethod
    def _resolve_collection(collection_name: str) -> Collection:
        try:
            return Collection(collection_name)
        except ValueError:
            raise ResourceNotFoundError(f"Unknown collection: {collection_name}")

    # Persistence hooks

    def save(self) -> None:
        """Persist the current state. The in-memory store keeps nothing."""
        pass

    def load(self, data: Dict[str, Any]) -> None:
        """Replace the contents of the store with a serialized document.

        Unknown keys are ignored and collections that are not lists are reset
        to empty.
        """
        loaded: Dict[Collection, List[AbstractEntity]] = {c: [] for c in Collection}
        for collection in Collection:
            raw = data.get(collection.value)
            if not isinstance(raw, list):
                if raw is not None:
                    logger.warning("Ignoring malformed collection %s in data file", collection.value)
                continue
            entity_type = ENTITY_TYPES[collection]
            loaded[collection] = [entity_type.from_dict(item) for item in raw if isinstance(item, dict)]
        with self._lock:
            self._data = loaded

    def _insert(self, collection: Collection, record: AbstractEntity) -> AbstractEntity:
        self._data[collection].append(record)
        try:
            self.save()
        except PersistenceError:
            self._data[collection].pop()
            raise
        logger.info("Created %s %s", collection.value, record.id)
        return record

    def _replace(self, collection: Collection, position: int, record: AbstractEntity) -> AbstractEntity:
        entries = self._data[collection]
        previous = entries[position]
        entries[position] = record
        try:
            self.save()
        except PersistenceError:
            entries[position] = previous
            raise
        logger.info("Updated %s %s", collection.value, record.id)
        return record

    def _require(self, collection: Collection, entity_id: Any, label: str) -> AbstractEntity:
        record = self.find_by_id(collection, entity_id) if entity_id else None
        if record is None:
            raise ValidationError(f"Referenced {label} does not exist.")
        return record

    # Mutations

    def add_program(self, code: Any, name: Any, description: Any = "") -> Program:
        code, name, description = _text(code), _text(name), _text(description)
        if not code or not name:
            raise ValidationError("Program code and name are required.")
        with self._lock:
            if any(p.code.lower() == code.lower() for p in self._data[Collection.PROGRAMS]):
                raise DuplicateEntityError("A program with this code already exists.")
            return self._insert(Collection.PROGRAMS, Program(code=code, name=name, description=description))

    def add_semester(self, name: Any, sequence: Any) -> Semester:
        name, sequence = _text(name), as_number(sequence)
        if not name or sequence is None:
            raise ValidationError("Semester name and sequence are required.")
        with self._lock:
            return self._insert(Collection.SEMESTERS, Semester(name=name, sequence=sequence))

    def add_course(self, code: Any, name: Any, program_id: Any, semester_id: Any, credits: Any) -> Course:
        code, name, credits = _text(code), _text(name), as_number(credits)
        if not code or not name or not program_id or not semester_id or credits is None:
            raise ValidationError("Course code, name, program, semester and credits are required.")
        with self._lock:
            self._require(Collection.PROGRAMS, program_id, "program")
            self._require(Collection.SEMESTERS, semester_id, "semester")
            course = Course(code=code, name=name, program_id=program_id, semester_id=semester_id,
                            credits=credits)
            return self._insert(Collection.COURSES, course)

    def add_student(self, student_id: Any, name: Any, program_id: Any, email: Any = "") -> Student:
        student_id, name, email = _text(student_id), _text(name), _text(email)
        if not student_id or not name or not program_id:
            raise ValidationError("Student ID, name and program are required.")
        with self._lock:
            self._require(Collection.PROGRAMS, program_id, "program")
            if any(s.student_id.lower() == student_id.lower() for s in self._data[Collection.STUDENTS]):
                raise DuplicateEntityError("A student with this ID already exists.")
            student = Student(student_id=student_id, name=name, email=email, program_id=program_id)
            return self._insert(Collection.STUDENTS, student)

    def add_enrolment(self, student_id: Any, course_id: Any, semester_id: Any, year: Any) -> Enrolment:
        year = _text(year)
        if not student_id or not course_id or not semester_id or not year:
            raise ValidationError("Student, course, semester and academic year are required.")
        with self._lock:
            self._require(Collection.STUDENTS, student_id, "student")
            self._require(Collection.COURSES, course_id, "course")
            self._require(Collection.SEMESTERS, semester_id, "semester")
            key = (student_id, course_id, semester_id, year)
            if any((e.student_id, e.course_id, e.semester_id, e.year) == key
                   for e in self._data[Collection.ENROLMENTS]):
                raise DuplicateEntityError(
                    "Enrolment already exists for the provided student, course, semester and year."
                )
            enrolment = Enrolment(student_id=student_id, course_id=course_id,
                                  semester_id=semester_id, year=year)
            return self._insert(Collection.ENROLMENTS, enrolment)

    def add_program_outcome(self, program_id: Any, code: Any, description: Any = "") -> ProgramOutcome:
        code, description = _text(code), _text(description)
        if not program_id or not code:
            raise ValidationError("Program and outcome code are required.")
        with self._lock:
            self._require(Collection.PROGRAMS, program_id, "program")
            if any(o.program_id == program_id and o.code.lower() == code.lower()
                   for o in self._data[Collection.PROGRAM_OUTCOMES]):
                raise DuplicateEntityError("An outcome with this code already exists for the program.")
            outcome = ProgramOutcome(program_id=program_id, code=code, description=description)
            return self._insert(Collection.PROGRAM_OUTCOMES, outcome)

    def add_course_outcome(self, course_id: Any, code: Any, description: Any = "") -> CourseOutcome:
        code, description = _text(code), _text(description)
        if not course_id or not code:
            raise ValidationError("Course and outcome code are required.")
        with self._lock:
            self._require(Collection.COURSES, course_id, "course")
            if any(o.course_id == course_id and o.code.lower() == code.lower()
                   for o in self._data[Collection.COURSE_OUTCOMES]):
                raise DuplicateEntityError("An outcome with this code already exists for the course.")
            outcome = CourseOutcome(course_id=course_id, code=code, description=description)
            return self._insert(Collection.COURSE_OUTCOMES, outcome)

    def add_co_po_mapping(self, course_outcome_id: Any, program_outcome_id: Any, weight: Any) -> CoPoMapping:
        weight = as_number(weight)
        if not course_outcome_id or not program_outcome_id or weight is None:
            raise ValidationError("Course outcome, program outcome and weight are required.")
        self._check_weight(weight)
        with self._lock:
            self._require(Collection.COURSE_OUTCOMES, course_outcome_id, "course outcome")
            self._require(Collection.PROGRAM_OUTCOMES, program_outcome_id, "program outcome")
            if any(m.course_outcome_id == course_outcome_id and m.program_outcome_id == program_outcome_id
                   for m in self._data[Collection.CO_PO_MAPPINGS]):
                raise DuplicateEntityError("The CO and PO are already mapped.")
            mapping = CoPoMapping(course_outcome_id=course_outcome_id,
                                  program_outcome_id=program_outcome_id, weight=weight)
            return self._insert(Collection.CO_PO_MAPPINGS, mapping)

    def add_assessment(self, course_id: Any, name: Any, assessment_type: Any, max_marks: Any,
                       semester_id: Any) -> Assessment:
        name, assessment_type, max_marks = _text(name), _text(assessment_type), as_number(max_marks)
        if not course_id or not name or not assessment_type or max_marks is None or not semester_id:
            raise ValidationError("Assessment course, name, type, max marks and semester are required.")
        if max_marks <= 0:
            raise ValidationError("Assessment max marks must be a positive number.")
        with self._lock:
            self._require(Collection.COURSES, course_id, "course")
            self._require(Collection.SEMESTERS, semester_id, "semester")
            assessment = Assessment(course_id=course_id, name=name, assessment_type=assessment_type,
                                    max_marks=max_marks, semester_id=semester_id)
            return self._insert(Collection.ASSESSMENTS, assessment)

    def add_assessment_co_mapping(self, assessment_id: Any, course_outcome_id: Any,
                                  weight: Any) -> AssessmentCoMapping:
        weight = as_number(weight)
        if not assessment_id or not course_outcome_id or weight is None:
            raise ValidationError("Assessment, course outcome and weight are required.")
        self._check_weight(weight)
        with self._lock:
            self._require(Collection.ASSESSMENTS, assessment_id, "assessment")
            self._require(Collection.COURSE_OUTCOMES, course_outcome_id, "course outcome")
            if any(m.assessment_id == assessment_id and m.course_outcome_id == course_outcome_id
                   for m in self._data[Collection.ASSESSMENT_CO_MAPPINGS]):
                raise DuplicateEntityError("The assessment and course outcome are already mapped.")
            mapping = AssessmentCoMapping(assessment_id=assessment_id,
                                          course_outcome_id=course_outcome_id, weight=weight)
            return self._insert(Collection.ASSESSMENT_CO_MAPPINGS, mapping)

    def upsert_mark(self, enrolment_id: Any, assessment_id: Any, marks: Any) -> Tuple[Mark, bool]:
        """Record marks for an (enrolment, assessment) pair, replacing any previous entry.

        Returns the stored mark and whether it was newly created.
        """
        marks = as_number(marks)
        if not enrolment_id or not assessment_id or marks is None:
            raise ValidationError("Enrolment, assessment and marks are required.")
        with self._lock:
            self._require(Collection.ENROLMENTS, enrolment_id, "enrolment")
            self._require(Collection.ASSESSMENTS, assessment_id, "assessment")
            entries = self._data[Collection.MARKS]
            for position, entry in enumerate(entries):
                if entry.enrolment_id == enrolment_id and entry.assessment_id == assessment_id:
                    return self._replace(Collection.MARKS, position, entry.replace(marks=marks)), False
            mark = Mark(enrolment_id=enrolment_id, assessment_id=assessment_id, marks=marks)
            return self._insert(Collection.MARKS, mark), True

    def upsert_course_report(self, course_id: Any, semester_id: Any, year: Any, summary: Any = "",
                             actions: Any = "") -> Tuple[CourseReport, bool]:
        """Record the course-end report for a course offering, replacing any previous one."""
        year, summary, actions = _text(year), _text(summary), _text(actions)
        if not course_id or not semester_id or not year:
            raise ValidationError("Course, semester and academic year are required.")
        with self._lock:
            self._require(Collection.COURSES, course_id, "course")
            self._require(Collection.SEMESTERS, semester_id, "semester")
            entries = self._data[Collection.COURSE_REPORTS]
            for position, entry in enumerate(entries):
                if (entry.course_id, entry.semester_id, entry.year) == (course_id, semester_id, year):
                    updated = entry.replace(summary=summary, actions=actions)
                    return self._replace(Collection.COURSE_REPORTS, position, updated), False
            report = CourseReport(course_id=course_id, semester_id=semester_id, year=year,
                                  summary=summary, actions=actions)
            return self._insert(Collection.COURSE_REPORTS, report), True

    @staticmethod
    def _check_weight(weight: float) -> None:
        if weight < 0 or weight > 100:
            raise ValidationError("Weight must be between 0 and 100.")


class FileRecordStore(RecordStore):
    """Record store persisted as one JSON document, rewritten after every mutation."""

    def __init__(self, data_file: str = "data.json"):
        super().__init__()
        self._data_file = data_file
        self._initialize_store()

    @property
    def data_file(self) -> str:
        return self._data_file

    def _initialize_store(self) -> None:
        """Load the data file, creating it when missing."""
        if not os.path.exists(self._data_file):
            logger.info("Data file %s not found, starting with an empty store", self._data_file)
            self.save()
            return
        try:
            with open(self._data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to read data file {self._data_file}: {str(e)}")
        if not isinstance(data, dict):
            raise PersistenceError(f"Data file {self._data_file} does not hold a JSON object")
        self.load(data)
        # rewrite so the file carries every collection key
        self.save()

    def save(self) -> None:
        """Write the whole store to the data file via an atomic replace."""
        with self._lock:
            document = self.get_all()
            directory = os.path.dirname(os.path.abspath(self._data_file))
            temp_path = None
            try:
                os.makedirs(directory, exist_ok=True)
                fd, temp_path = tempfile.mkstemp(prefix=".obe-", suffix=".json", dir=directory)
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2)
                os.replace(temp_path, self._data_file)
            except OSError as e:
                if temp_path and os.path.exists(temp_path):
                    os.remove(temp_path)
                raise PersistenceError(f"Failed to write data file {self._data_file}: {str(e)}")


class StoreFactory:
    """Factory for creating record store instances."""

    @staticmethod
    def create_store(store_type: str, **kwargs) -> RecordStore:
        """Create a record store based on type."""
        if store_type.lower() == "memory":
            return RecordStore()
        elif store_type.lower() == "file":
            return FileRecordStore(**kwargs)
        else:
            raise ConfigurationError(f"Unsupported store type: {store_type}")
