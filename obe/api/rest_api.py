"""
REST API implementation for the OBE portal using FastAPI.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .. import __version__
from ..core.exceptions import ObeException
from ..persistence import RecordStore
from ..services import ReportService

logger = logging.getLogger(__name__)


# Pydantic models for API. Required-field checks live in the store so that
# every entry point reports the same messages.
class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ProgramCreate(_Payload):
    code: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = ""


class SemesterCreate(_Payload):
    name: Optional[str] = None
    sequence: Optional[float] = None


class CourseCreate(_Payload):
    code: Optional[str] = None
    name: Optional[str] = None
    program_id: Optional[str] = Field(None, alias="programId")
    semester_id: Optional[str] = Field(None, alias="semesterId")
    credits: Optional[float] = None


class StudentCreate(_Payload):
    student_id: Optional[str] = Field(None, alias="studentId")
    name: Optional[str] = None
    email: Optional[str] = ""
    program_id: Optional[str] = Field(None, alias="programId")


class EnrolmentCreate(_Payload):
    student_id: Optional[str] = Field(None, alias="studentId")
    course_id: Optional[str] = Field(None, alias="courseId")
    semester_id: Optional[str] = Field(None, alias="semesterId")
    year: Optional[str] = None


class ProgramOutcomeCreate(_Payload):
    program_id: Optional[str] = Field(None, alias="programId")
    code: Optional[str] = None
    description: Optional[str] = ""


class CourseOutcomeCreate(_Payload):
    course_id: Optional[str] = Field(None, alias="courseId")
    code: Optional[str] = None
    description: Optional[str] = ""


class CoPoMappingCreate(_Payload):
    course_outcome_id: Optional[str] = Field(None, alias="courseOutcomeId")
    program_outcome_id: Optional[str] = Field(None, alias="programOutcomeId")
    weight: Optional[float] = None


class AssessmentCreate(_Payload):
    course_id: Optional[str] = Field(None, alias="courseId")
    name: Optional[str] = None
    assessment_type: Optional[str] = Field(None, alias="type")
    max_marks: Optional[float] = Field(None, alias="maxMarks")
    semester_id: Optional[str] = Field(None, alias="semesterId")


class AssessmentCoMappingCreate(_Payload):
    assessment_id: Optional[str] = Field(None, alias="assessmentId")
    course_outcome_id: Optional[str] = Field(None, alias="courseOutcomeId")
    weight: Optional[float] = None


class MarkUpsert(_Payload):
    enrolment_id: Optional[str] = Field(None, alias="enrolmentId")
    assessment_id: Optional[str] = Field(None, alias="assessmentId")
    marks: Optional[float] = None


class CourseReportUpsert(_Payload):
    course_id: Optional[str] = Field(None, alias="courseId")
    semester_id: Optional[str] = Field(None, alias="semesterId")
    year: Optional[str] = None
    summary: Optional[str] = ""
    actions: Optional[str] = ""


class ObeRestAPI:
    """REST API implementation for the OBE portal."""

    def __init__(self, store: RecordStore, report_service: Optional[ReportService] = None):
        self._store = store
        self._report_service = report_service or ReportService(store)

        # Create FastAPI app
        self.app = FastAPI(
            title="OBE Portal API",
            description="Outcome Based Education bookkeeping and attainment reporting",
            version=__version__,
            docs_url="/docs",
            redoc_url="/redoc"
        )

        # Add CORS middleware
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._setup_error_handlers()
        self._setup_routes()

    def _setup_error_handlers(self):
        """Answer every error as ``{"error": message}``."""

        @self.app.exception_handler(ObeException)
        async def obe_error(request: Request, exc: ObeException):
            return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

        @self.app.exception_handler(RequestValidationError)
        async def request_validation_error(request: Request, exc: RequestValidationError):
            fields = ", ".join(str(error["loc"][-1]) for error in exc.errors())
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST,
                                content={"error": f"Invalid value for: {fields}"})

        @self.app.exception_handler(Exception)
        async def unexpected_error(request: Request, exc: Exception):
            logger.exception("Unexpected error handling %s %s", request.method, request.url.path)
            return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                                content={"error": "Internal server error"})

    def _setup_routes(self):
        """Setup API routes."""
        store = self._store
        reports = self._report_service

        @self.app.get("/health", response_model=Dict[str, str])
        async def health_check():
            """Health check endpoint."""
            return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

        @self.app.get("/api/data")
        def get_all_data():
            """Every collection in one document."""
            return store.get_all()

        # Report endpoints
        @self.app.get("/api/reports/co-student")
        def co_student_report(student_id: str = Query(..., alias="studentId"),
                              course_id: str = Query(..., alias="courseId")):
            """CO attainment of a student's latest enrolment in a course."""
            return reports.co_student_report(student_id, course_id).to_dict()

        @self.app.get("/api/reports/co-semester")
        def co_semester_report(course_id: str = Query(..., alias="courseId"),
                               semester_id: str = Query(..., alias="semesterId")):
            """Average CO attainment for a course in a semester."""
            return reports.co_semester_report(course_id, semester_id).to_dict()

        @self.app.get("/api/reports/po-student")
        def po_student_report(student_id: str = Query(..., alias="studentId")):
            """PO attainment of a student."""
            return reports.po_student_report(student_id).to_dict()

        @self.app.get("/api/reports/po-semester")
        def po_semester_report(program_id: str = Query(..., alias="programId"),
                               semester_id: str = Query(..., alias="semesterId")):
            """Average PO attainment for a program in a semester."""
            return reports.po_semester_report(program_id, semester_id).to_dict()

        @self.app.get("/api/reports/po-co-matrix")
        def po_co_matrix(program_id: str = Query(..., alias="programId")):
            """CO to PO weight matrix for a program."""
            return reports.po_co_matrix(program_id).to_dict()

        @self.app.get("/api/reports/marks")
        def marks_sheet(course_id: str = Query(..., alias="courseId")):
            """Recorded marks for a course."""
            return reports.marks_sheet(course_id).to_dict()

        @self.app.get("/api/{collection}", response_model=List[Dict[str, Any]])
        def list_collection(collection: str):
            """List one collection."""
            return store.list(collection)

        # Record endpoints
        @self.app.post("/api/programs", status_code=status.HTTP_201_CREATED)
        def create_program(data: ProgramCreate):
            return store.add_program(**data.model_dump()).to_dict()

        @self.app.post("/api/semesters", status_code=status.HTTP_201_CREATED)
        def create_semester(data: SemesterCreate):
            return store.add_semester(**data.model_dump()).to_dict()

        @self.app.post("/api/courses", status_code=status.HTTP_201_CREATED)
        def create_course(data: CourseCreate):
            return store.add_course(**data.model_dump()).to_dict()

        @self.app.post("/api/students", status_code=status.HTTP_201_CREATED)
        def create_student(data: StudentCreate):
            return store.add_student(**data.model_dump()).to_dict()

        @self.app.post("/api/enrolments", status_code=status.HTTP_201_CREATED)
        def create_enrolment(data: EnrolmentCreate):
            return store.add_enrolment(**data.model_dump()).to_dict()

        @self.app.post("/api/programOutcomes", status_code=status.HTTP_201_CREATED)
        def create_program_outcome(data: ProgramOutcomeCreate):
            return store.add_program_outcome(**data.model_dump()).to_dict()

        @self.app.post("/api/courseOutcomes", status_code=status.HTTP_201_CREATED)
        def create_course_outcome(data: CourseOutcomeCreate):
            return store.add_course_outcome(**data.model_dump()).to_dict()

        @self.app.post("/api/coPoMappings", status_code=status.HTTP_201_CREATED)
        def create_co_po_mapping(data: CoPoMappingCreate):
            return store.add_co_po_mapping(**data.model_dump()).to_dict()

        @self.app.post("/api/assessments", status_code=status.HTTP_201_CREATED)
        def create_assessment(data: AssessmentCreate):
            return store.add_assessment(**data.model_dump()).to_dict()

        @self.app.post("/api/assessmentCoMappings", status_code=status.HTTP_201_CREATED)
        def create_assessment_co_mapping(data: AssessmentCoMappingCreate):
            return store.add_assessment_co_mapping(**data.model_dump()).to_dict()

        @self.app.post("/api/marks")
        def upsert_mark(data: MarkUpsert):
            """Record marks; 201 when created, 200 when an existing entry is updated."""
            mark, created = store.upsert_mark(**data.model_dump())
            return JSONResponse(status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
                                content=mark.to_dict())

        @self.app.post("/api/courseReports")
        def upsert_course_report(data: CourseReportUpsert):
            """Record a course report; 201 when created, 200 when updated."""
            report, created = store.upsert_course_report(**data.model_dump())
            return JSONResponse(status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
                                content=report.to_dict())
