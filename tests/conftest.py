import pytest

from obe.persistence import RecordStore


@pytest.fixture
def store():
    return RecordStore()


@pytest.fixture
def program(store):
    return store.add_program("BTECH-CSE", "B.Tech Computer Science")


@pytest.fixture
def semester(store):
    return store.add_semester("Semester 1", 1)


@pytest.fixture
def course(store, program, semester):
    return store.add_course("CS101", "Programming Fundamentals", program.id, semester.id, 4)


@pytest.fixture
def student(store, program):
    return store.add_student("S001", "Alice Johnson", program.id, email="alice@example.edu")


@pytest.fixture
def enrolment(store, student, course, semester):
    return store.add_enrolment(student.id, course.id, semester.id, "2024-25")


@pytest.fixture
def make_assessment(store, course, semester):
    def _make(name, max_marks, course_id=None):
        return store.add_assessment(course_id or course.id, name, "exam", max_marks, semester.id)
    return _make
