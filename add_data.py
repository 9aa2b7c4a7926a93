"""
Script to add sample OBE data to a running portal via the REST API.
Make sure the server is running before executing this script.

Usage:
    python add_data.py [--url http://127.0.0.1:3000]
"""

import argparse
import json
import os
import sys

import requests


class PortalClient:
    """Thin client for the portal's REST API."""

    def __init__(self, base_url, timeout=5):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    def is_up(self):
        try:
            return self.session.get(f"{self.base_url}/health", timeout=2).ok
        except requests.exceptions.RequestException:
            return False

    def create(self, collection, data, label):
        """POST a record to a collection; returns the stored record or None."""
        try:
            response = self.session.post(f"{self.base_url}/api/{collection}", json=data, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            print(f"✗ Error creating {label}: {e}")
            return None
        if response.ok:
            print(f"✓ Saved {label}")
            return response.json()
        print(f"✗ Failed to create {label}: {response.json().get('error', response.text)}")
        return None

    def report(self, path, params):
        response = self.session.get(f"{self.base_url}/api/reports/{path}", params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def counts(self):
        response = self.session.get(f"{self.base_url}/api/data", timeout=self.timeout)
        response.raise_for_status()
        return {name: len(records) for name, records in response.json().items()}


def show_report(client, path, params, title):
    """Fetch a report and print its rows."""
    try:
        report = client.report(path, params)
    except requests.exceptions.RequestException as e:
        print(f"✗ Error fetching {title}: {e}")
        return None
    print(f"\n{'='*60}")
    print(title)
    print(f"{'='*60}")
    if report.get("message"):
        print(f"  {report['message']}")
    for row in report.get("rows", []):
        print(f"  {row['code']:6} | {row['attainment']:>8} | {row['status']}")
    return report


def require(*records):
    if any(record is None for record in records):
        print("\n✗ Stopping: a required record could not be created")
        sys.exit(1)


def main():
    """Main execution."""
    parser = argparse.ArgumentParser(description="Seed a running OBE portal with sample data")
    parser.add_argument("--url", default=os.environ.get("OBE_BASE_URL", "http://127.0.0.1:3000"),
                        help="Portal base URL")
    args = parser.parse_args()
    client = PortalClient(args.url)
    create = client.create

    print("="*60)
    print("OBE Portal - Data Addition Script")
    print("="*60)

    if not client.is_up():
        print(f"✗ No portal answering at {client.base_url}")
        print("\nPlease start the server first:")
        print("  obe-portal --port 3000")
        sys.exit(1)

    print("\nCreating program structure...")
    program = create("programs", {"code": "BTECH-ECE", "name": "B.Tech Electronics",
                                  "description": "Undergraduate program"}, "program BTECH-ECE")
    semester = create("semesters", {"name": "Semester 3", "sequence": 3}, "semester 3")
    require(program, semester)
    course = create("courses", {"code": "EC201", "name": "Signals and Systems",
                                "programId": program["id"], "semesterId": semester["id"],
                                "credits": 4}, "course EC201")
    require(course)

    print("\nCreating outcomes and mappings...")
    po1 = create("programOutcomes", {"programId": program["id"], "code": "PO1",
                                     "description": "Engineering knowledge"}, "PO1")
    po2 = create("programOutcomes", {"programId": program["id"], "code": "PO2",
                                     "description": "Problem analysis"}, "PO2")
    co1 = create("courseOutcomes", {"courseId": course["id"], "code": "CO1",
                                    "description": "Classify signals and systems"}, "CO1")
    co2 = create("courseOutcomes", {"courseId": course["id"], "code": "CO2",
                                    "description": "Apply Fourier analysis"}, "CO2")
    require(po1, po2, co1, co2)
    create("coPoMappings", {"courseOutcomeId": co1["id"], "programOutcomeId": po1["id"], "weight": 100}, "CO1->PO1")
    create("coPoMappings", {"courseOutcomeId": co2["id"], "programOutcomeId": po1["id"], "weight": 60}, "CO2->PO1")
    create("coPoMappings", {"courseOutcomeId": co2["id"], "programOutcomeId": po2["id"], "weight": 0}, "CO2->PO2")

    print("\nCreating assessments...")
    quiz = create("assessments", {"courseId": course["id"], "name": "Quiz 1", "type": "quiz",
                                  "maxMarks": 20, "semesterId": semester["id"]}, "Quiz 1")
    final = create("assessments", {"courseId": course["id"], "name": "End-semester", "type": "exam",
                                   "maxMarks": 100, "semesterId": semester["id"]}, "End-semester")
    require(quiz, final)
    create("assessmentCoMappings", {"assessmentId": quiz["id"], "courseOutcomeId": co1["id"], "weight": 0}, "Quiz 1->CO1")
    create("assessmentCoMappings", {"assessmentId": final["id"], "courseOutcomeId": co1["id"], "weight": 40}, "End-semester->CO1")
    create("assessmentCoMappings", {"assessmentId": final["id"], "courseOutcomeId": co2["id"], "weight": 60}, "End-semester->CO2")

    print("\nCreating students, enrolments and marks...")
    roster = [("EC001", "Asha Rao", 17, 72), ("EC002", "Imran Khan", 11, 48), ("EC003", "Meera Iyer", 14, None)]
    students = []
    for registration, name, quiz_marks, final_marks in roster:
        student = create("students", {"studentId": registration, "name": name,
                                      "programId": program["id"]}, f"student {registration}")
        if not student:
            continue
        students.append(student)
        enrolment = create("enrolments", {"studentId": student["id"], "courseId": course["id"],
                                          "semesterId": semester["id"], "year": "2024-25"},
                           f"enrolment of {registration}")
        if not enrolment:
            continue
        create("marks", {"enrolmentId": enrolment["id"], "assessmentId": quiz["id"], "marks": quiz_marks},
               f"quiz marks of {registration}")
        if final_marks is not None:
            create("marks", {"enrolmentId": enrolment["id"], "assessmentId": final["id"], "marks": final_marks},
                   f"final marks of {registration}")

    show_report(client, "co-semester", {"courseId": course["id"], "semesterId": semester["id"]},
                "Average CO attainment - EC201")
    show_report(client, "po-semester", {"programId": program["id"], "semesterId": semester["id"]},
                "Average PO attainment - BTECH-ECE")
    for student in students:
        show_report(client, "po-student", {"studentId": student["id"]}, f"PO attainment - {student['studentId']}")

    print(f"\nRecord counts: {json.dumps(client.counts())}")

    print("\n" + "="*60)
    print("✓ Sample data added successfully!")
    print("="*60)
    print("\nYou can now:")
    print(f"  - View API docs: {client.base_url}/docs")
    print(f"  - List courses: curl {client.base_url}/api/courses")
    print()


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\n✗ Interrupted by user")
        sys.exit(1)
