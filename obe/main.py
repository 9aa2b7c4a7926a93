"""
Main entry point for the OBE portal.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from .api.rest_api import ObeRestAPI
from .core.exceptions import ConfigurationError
from .persistence import RecordStore, StoreFactory
from .services import ReportService

DEFAULT_CONFIG: Dict[str, Any] = {
    'store_type': 'file',
    'store_config': {'data_file': 'data.json'},
    'host': '0.0.0.0',
    'port': 3000,
    'log_level': 'info',
}


def load_config(config_path: Optional[str] = None,
                environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Build the configuration: defaults, then the JSON config file, then environment."""
    environ = os.environ if environ is None else environ
    config = dict(DEFAULT_CONFIG)
    config['store_config'] = dict(DEFAULT_CONFIG['store_config'])

    if config_path:
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to read configuration file {config_path}: {str(e)}")
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Configuration file {config_path} must hold a JSON object")
        store_config = file_config.pop('store_config', None)
        config.update(file_config)
        if isinstance(store_config, dict):
            config['store_config'].update(store_config)

    if environ.get('OBE_DATA_FILE'):
        config['store_type'] = 'file'
        config['store_config']['data_file'] = environ['OBE_DATA_FILE']
    if environ.get('PORT'):
        try:
            config['port'] = int(environ['PORT'])
        except ValueError:
            raise ConfigurationError(f"Invalid PORT: {environ['PORT']}")
    if environ.get('OBE_LOG_LEVEL'):
        config['log_level'] = environ['OBE_LOG_LEVEL']

    return config


class ObePortal:
    """Main platform class that wires the store, services and API together."""

    def __init__(self, config: Optional[dict] = None):
        self._config = config or {}
        self._store: Optional[RecordStore] = None
        self._report_service: Optional[ReportService] = None
        self._rest_api: Optional[ObeRestAPI] = None

        # Initialize platform
        self._initialize_platform()

    def _initialize_platform(self):
        """Initialize the platform with all services."""
        print("Initializing OBE portal...")

        store_type = self._config.get('store_type', 'memory')
        store_config = self._config.get('store_config', {}) if store_type == 'file' else {}
        self._store = StoreFactory.create_store(store_type, **store_config)
        print(f"✓ Record store initialized: {store_type}")

        self._report_service = ReportService(self._store)
        print("✓ Services initialized")

        self._rest_api = ObeRestAPI(self._store, self._report_service)
        print("✓ API initialized")

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def reports(self) -> ReportService:
        return self._report_service

    @property
    def app(self):
        return self._rest_api.app

    def start_rest_server(self, host: str = "0.0.0.0", port: int = 3000):
        """Run the REST server until interrupted."""
        import uvicorn

        print(f"✓ OBE portal server listening on http://{host}:{port}")
        print(f"  - API Docs: http://{host}:{port}/docs")
        uvicorn.run(
            self.app,
            host=host,
            port=port,
            log_level=self._config.get('log_level', 'info').lower()
        )

    def create_sample_data(self):
        """Create sample data for demonstration."""
        store = self._store
        program = store.add_program("BTECH-CSE", "B.Tech Computer Science", "Undergraduate program")
        semester = store.add_semester("Semester 1", 1)
        course = store.add_course("CS101", "Programming Fundamentals", program.id, semester.id, 4)

        po1 = store.add_program_outcome(program.id, "PO1", "Engineering knowledge")
        po2 = store.add_program_outcome(program.id, "PO2", "Problem analysis")
        co1 = store.add_course_outcome(course.id, "CO1", "Write structured programs")
        co2 = store.add_course_outcome(course.id, "CO2", "Analyse algorithms")
        store.add_co_po_mapping(co1.id, po1.id, 100)
        store.add_co_po_mapping(co2.id, po1.id, 50)
        store.add_co_po_mapping(co2.id, po2.id, 0)

        midterm = store.add_assessment(course.id, "Mid-term", "exam", 50, semester.id)
        project = store.add_assessment(course.id, "Project", "assignment", 50, semester.id)
        store.add_assessment_co_mapping(midterm.id, co1.id, 0)
        store.add_assessment_co_mapping(midterm.id, co2.id, 50)
        store.add_assessment_co_mapping(project.id, co2.id, 50)

        scores = [("S001", "Alice Johnson", 40, 45), ("S002", "Bob Smith", 25, None),
                  ("S003", "Carol Davis", 30, 20)]
        for registration, name, midterm_marks, project_marks in scores:
            student = store.add_student(registration, name, program.id)
            enrolment = store.add_enrolment(student.id, course.id, semester.id, "2024-25")
            store.upsert_mark(enrolment.id, midterm.id, midterm_marks)
            if project_marks is not None:
                store.upsert_mark(enrolment.id, project.id, project_marks)

        print("✓ Sample data created")
        return program, semester, course

    def run_demo(self):
        """Load sample data and print every attainment report."""
        print("Running OBE portal demonstration...")
        program, semester, course = self.create_sample_data()

        reports = [
            self._report_service.co_semester_report(course.id, semester.id),
            self._report_service.po_semester_report(program.id, semester.id),
        ]
        for student in self._store.snapshot().students_for_program(program.id):
            reports.append(self._report_service.co_student_report(student.id, course.id))
            reports.append(self._report_service.po_student_report(student.id))

        for report in reports:
            print(f"\n=== {report.title} ===")
            if report.message:
                print(report.message)
            for row in report.rows:
                print(f"  {row.code:<6} {row.attainment:>8}  {row.status}")

        print("\n✓ Demo completed")


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="OBE Portal: outcome attainment bookkeeping")
    parser.add_argument("--host", type=str, help="REST server host")
    parser.add_argument("--port", type=int, help="REST server port")
    parser.add_argument("--data-file", type=str, help="JSON data file")
    parser.add_argument("--config", type=str, help="Configuration file path")
    parser.add_argument("--log-level", type=str, help="Logging level")
    parser.add_argument("--demo", action="store_true", help="Run demo mode on an in-memory store")

    args = parser.parse_args()

    # Load configuration
    config = load_config(args.config)
    if args.host:
        config['host'] = args.host
    if args.port:
        config['port'] = args.port
    if args.data_file:
        config['store_type'] = 'file'
        config['store_config']['data_file'] = args.data_file
    if args.log_level:
        config['log_level'] = args.log_level
    if args.demo:
        config['store_type'] = 'memory'

    logging.basicConfig(
        level=getattr(logging, str(config['log_level']).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    portal = ObePortal(config)

    try:
        if args.demo:
            portal.run_demo()
        else:
            portal.start_rest_server(config['host'], config['port'])
    except KeyboardInterrupt:
        print("\nShutting down...")


if __name__ == "__main__":
    main()
