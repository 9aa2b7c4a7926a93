"""
Core record types for the OBE portal.

Records are immutable once created: the store replaces a record rather than
mutating it, so a snapshot handed to the attainment engine can never change
underneath it.
"""

import math
import uuid
from abc import ABC
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

from .enums import Collection

T = TypeVar('T', bound='AbstractEntity')


def generate_id() -> str:
    """Generate a new record ID."""
    return f"id-{uuid.uuid4().hex}"


def as_number(value: Any) -> Optional[float]:
    """Coerce a value to a number, or ``None`` when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return int(number) if number.is_integer() else number


class AbstractEntity(ABC):
    """Base record with a universal ID and camelCase (de)serialization."""

    # (attribute name, data file key) pairs, in serialization order
    _fields: Tuple[Tuple[str, str], ...] = ()
    # attributes coerced with as_number when read from the data file
    _numeric_fields: Tuple[str, ...] = ()

    def __init__(self, entity_id: Optional[str] = None):
        self._id = entity_id or generate_id()

    @property
    def id(self) -> str:
        """Get the record ID."""
        return self._id

    def to_dict(self) -> Dict[str, Any]:
        """Convert the record to its data file representation."""
        data: Dict[str, Any] = {'id': self._id}
        for attr, key in self._fields:
            data[key] = getattr(self, f"_{attr}")
        return data

    @classmethod
    def from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
        """Build a record from its data file representation."""
        kwargs = {attr: data.get(key) for attr, key in cls._fields}
        for attr in cls._numeric_fields:
            kwargs[attr] = as_number(kwargs[attr])
        return cls(entity_id=data.get('id'), **kwargs)

    def replace(self: T, **changes: Any) -> T:
        """Return a copy of this record with the given fields changed."""
        kwargs = {attr: getattr(self, f"_{attr}") for attr, _ in self._fields}
        kwargs.update(changes)
        return type(self)(entity_id=self._id, **kwargs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AbstractEntity) or type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._id))

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_dict()!r})"


class Program(AbstractEntity):
    """An academic program (degree) that owns courses, students and POs."""

    _fields = (('code', 'code'), ('name', 'name'), ('description', 'description'))

    def __init__(self, code: str, name: str, description: str = "", **kwargs):
        super().__init__(**kwargs)
        self._code = code
        self._name = name
        self._description = description or ""

    @property
    def code(self) -> str:
        return self._code

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description


class Semester(AbstractEntity):
    """A semester, ordered by its sequence number."""

    _fields = (('name', 'name'), ('sequence', 'sequence'))
    _numeric_fields = ('sequence',)

    def __init__(self, name: str, sequence: float, **kwargs):
        super().__init__(**kwargs)
        self._name = name
        self._sequence = sequence

    @property
    def name(self) -> str:
        return self._name

    @property
    def sequence(self) -> float:
        return self._sequence


class Course(AbstractEntity):
    """A course offered by a program in a semester."""

    _fields = (
        ('code', 'code'), ('name', 'name'), ('program_id', 'programId'),
        ('semester_id', 'semesterId'), ('credits', 'credits'),
    )
    _numeric_fields = ('credits',)

    def __init__(self, code: str, name: str, program_id: str, semester_id: str,
                 credits: float, **kwargs):
        super().__init__(**kwargs)
        self._code = code
        self._name = name
        self._program_id = program_id
        self._semester_id = semester_id
        self._credits = credits

    @property
    def code(self) -> str:
        return self._code

    @property
    def name(self) -> str:
        return self._name

    @property
    def program_id(self) -> str:
        return self._program_id

    @property
    def semester_id(self) -> str:
        return self._semester_id

    @property
    def credits(self) -> float:
        return self._credits


class Student(AbstractEntity):
    """A student registered in a program.

    ``student_id`` is the institution's registration number, distinct from
    the record ``id`` that enrolments refer to.
    """

    _fields = (
        ('student_id', 'studentId'), ('name', 'name'), ('email', 'email'),
        ('program_id', 'programId'),
    )

    def __init__(self, student_id: str, name: str, program_id: str, email: str = "", **kwargs):
        super().__init__(**kwargs)
        self._student_id = student_id
        self._name = name
        self._email = email or ""
        self._program_id = program_id

    @property
    def student_id(self) -> str:
        return self._student_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def email(self) -> str:
        return self._email

    @property
    def program_id(self) -> str:
        return self._program_id


class Enrolment(AbstractEntity):
    """One student's participation in one course offering."""

    _fields = (
        ('student_id', 'studentId'), ('course_id', 'courseId'),
        ('semester_id', 'semesterId'), ('year', 'year'),
    )

    def __init__(self, student_id: str, course_id: str, semester_id: str, year: str, **kwargs):
        super().__init__(**kwargs)
        self._student_id = student_id
        self._course_id = course_id
        self._semester_id = semester_id
        self._year = year

    @property
    def student_id(self) -> str:
        return self._student_id

    @property
    def course_id(self) -> str:
        return self._course_id

    @property
    def semester_id(self) -> str:
        return self._semester_id

    @property
    def year(self) -> str:
        """Free-text academic year, e.g. ``2024-25``."""
        return self._year


class ProgramOutcome(AbstractEntity):
    """A measurable outcome defined for a program (PO)."""

    _fields = (('program_id', 'programId'), ('code', 'code'), ('description', 'description'))

    def __init__(self, program_id: str, code: str, description: str = "", **kwargs):
        super().__init__(**kwargs)
        self._program_id = program_id
        self._code = code
        self._description = description or ""

    @property
    def program_id(self) -> str:
        return self._program_id

    @property
    def code(self) -> str:
        return self._code

    @property
    def description(self) -> str:
        return self._description


class CourseOutcome(AbstractEntity):
    """A measurable outcome defined for a course (CO)."""

    _fields = (('course_id', 'courseId'), ('code', 'code'), ('description', 'description'))

    def __init__(self, course_id: str, code: str, description: str = "", **kwargs):
        super().__init__(**kwargs)
        self._course_id = course_id
        self._code = code
        self._description = description or ""

    @property
    def course_id(self) -> str:
        return self._course_id

    @property
    def code(self) -> str:
        return self._code

    @property
    def description(self) -> str:
        return self._description


class CoPoMapping(AbstractEntity):
    """Contribution weight of a CO towards a PO. Weight 0 means full weight."""

    _fields = (
        ('course_outcome_id', 'courseOutcomeId'), ('program_outcome_id', 'programOutcomeId'),
        ('weight', 'weight'),
    )
    _numeric_fields = ('weight',)

    def __init__(self, course_outcome_id: str, program_outcome_id: str,
                 weight: Optional[float] = 0, **kwargs):
        super().__init__(**kwargs)
        self._course_outcome_id = course_outcome_id
        self._program_outcome_id = program_outcome_id
        self._weight = weight

    @property
    def course_outcome_id(self) -> str:
        return self._course_outcome_id

    @property
    def program_outcome_id(self) -> str:
        return self._program_outcome_id

    @property
    def weight(self) -> Optional[float]:
        return self._weight


class Assessment(AbstractEntity):
    """A gradable component of a course."""

    _fields = (
        ('course_id', 'courseId'), ('name', 'name'), ('assessment_type', 'type'),
        ('max_marks', 'maxMarks'), ('semester_id', 'semesterId'),
    )
    _numeric_fields = ('max_marks',)

    def __init__(self, course_id: str, name: str, assessment_type: str, max_marks: float,
                 semester_id: str, **kwargs):
        super().__init__(**kwargs)
        self._course_id = course_id
        self._name = name
        self._assessment_type = assessment_type
        self._max_marks = max_marks
        self._semester_id = semester_id

    @property
    def course_id(self) -> str:
        return self._course_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def assessment_type(self) -> str:
        return self._assessment_type

    @property
    def max_marks(self) -> float:
        return self._max_marks

    @property
    def semester_id(self) -> str:
        return self._semester_id


class AssessmentCoMapping(AbstractEntity):
    """Contribution weight of an assessment towards a CO. Weight 0 means unweighted."""

    _fields = (
        ('assessment_id', 'assessmentId'), ('course_outcome_id', 'courseOutcomeId'),
        ('weight', 'weight'),
    )
    _numeric_fields = ('weight',)

    def __init__(self, assessment_id: str, course_outcome_id: str,
                 weight: Optional[float] = 0, **kwargs):
        super().__init__(**kwargs)
        self._assessment_id = assessment_id
        self._course_outcome_id = course_outcome_id
        self._weight = weight

    @property
    def assessment_id(self) -> str:
        return self._assessment_id

    @property
    def course_outcome_id(self) -> str:
        return self._course_outcome_id

    @property
    def weight(self) -> Optional[float]:
        return self._weight


class Mark(AbstractEntity):
    """Marks scored by an enrolment on an assessment."""

    _fields = (('enrolment_id', 'enrolmentId'), ('assessment_id', 'assessmentId'), ('marks', 'marks'))
    _numeric_fields = ('marks',)

    def __init__(self, enrolment_id: str, assessment_id: str, marks: float, **kwargs):
        super().__init__(**kwargs)
        self._enrolment_id = enrolment_id
        self._assessment_id = assessment_id
        self._marks = marks

    @property
    def enrolment_id(self) -> str:
        return self._enrolment_id

    @property
    def assessment_id(self) -> str:
        return self._assessment_id

    @property
    def marks(self) -> float:
        return self._marks


class CourseReport(AbstractEntity):
    """Course-end summary and improvement actions for a course offering."""

    _fields = (
        ('course_id', 'courseId'), ('semester_id', 'semesterId'), ('year', 'year'),
        ('summary', 'summary'), ('actions', 'actions'),
    )

    def __init__(self, course_id: str, semester_id: str, year: str, summary: str = "",
                 actions: str = "", **kwargs):
        super().__init__(**kwargs)
        self._course_id = course_id
        self._semester_id = semester_id
        self._year = year
        self._summary = summary or ""
        self._actions = actions or ""

    @property
    def course_id(self) -> str:
        return self._course_id

    @property
    def semester_id(self) -> str:
        return self._semester_id

    @property
    def year(self) -> str:
        return self._year

    @property
    def summary(self) -> str:
        return self._summary

    @property
    def actions(self) -> str:
        return self._actions


ENTITY_TYPES: Dict[Collection, Type[AbstractEntity]] = {
    Collection.PROGRAMS: Program,
    Collection.SEMESTERS: Semester,
    Collection.COURSES: Course,
    Collection.STUDENTS: Student,
    Collection.ENROLMENTS: Enrolment,
    Collection.PROGRAM_OUTCOMES: ProgramOutcome,
    Collection.COURSE_OUTCOMES: CourseOutcome,
    Collection.CO_PO_MAPPINGS: CoPoMapping,
    Collection.ASSESSMENTS: Assessment,
    Collection.ASSESSMENT_CO_MAPPINGS: AssessmentCoMapping,
    Collection.MARKS: Mark,
    Collection.COURSE_REPORTS: CourseReport,
}
