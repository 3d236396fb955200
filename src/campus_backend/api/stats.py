from typing import Dict, List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from campus_backend.api.attendance import attendance_rate
from campus_backend.api.exceptions import NotFoundException
from campus_backend.api.responses import ok
from campus_backend.database import get_db
from campus_backend.model.grade import Grade
from campus_backend.model.schedule import Attendance
from campus_backend.model.university import Course, Department, Student, StudentGroup, Teacher, course_enrollment
from campus_backend.permissions.guards import RequirePermission
from campus_backend.permissions.matrix import Capability, Role

stats_router = APIRouter()

CanViewDashboard = RequirePermission(Capability.VIEW_DASHBOARD)

GRADE_BANDS = (
    ("90-100", 90, "Excellent"),
    ("80-89", 80, "Very good"),
    ("70-79", 70, "Good"),
    ("60-69", 60, "Pass"),
    ("0-59", 0, "Insufficient"),
)


def grade_distribution(values: List[float]) -> List[Dict]:
    """Count grades per band, every grade lands in the first band whose lower bound it reaches."""
    distribution = [{"range": label, "count": 0, "label": name} for label, _, name in GRADE_BANDS]

    for value in values:
        for index, (_, lower, _) in enumerate(GRADE_BANDS):
            if value >= lower:
                distribution[index]["count"] += 1
                break

    return distribution


def _average(values: List[float]) -> float:
    if not values:
        return 0
    return round(sum(values) / len(values), 1)


def global_stats(db: Session) -> Dict:
    students_by_department = (
        db.query(Department.name, func.count(Student.id))
        .join(Student, Student.department_id == Department.id)
        .group_by(Department.id, Department.name)
        .all()
    )
    average: Optional[float] = db.query(func.avg(Grade.grade)).scalar()

    return {
        "role": Role.ADMIN.value,
        "counts": {
            "students": db.query(Student).count(),
            "teachers": db.query(Teacher).count(),
            "courses": db.query(Course).count(),
            "departments": db.query(Department).count(),
            "groups": db.query(StudentGroup).count(),
            "grades": db.query(Grade).count(),
        },
        "students_by_department": [{"name": name, "count": count} for name, count in students_by_department],
        "average_grade": round(average, 1) if average is not None else 0,
    }


def teacher_stats(db: Session, teacher_id: str) -> Dict:
    teacher = db.query(Teacher).filter(Teacher.id == teacher_id).first()
    if teacher is None:
        raise NotFoundException(detail="Teacher not found")

    courses = db.query(Course).filter(Course.teacher_id == teacher_id).order_by(Course.code).all()
    submitted = db.query(Grade).filter(Grade.submitted_by == teacher_id).order_by(Grade.created_at.desc()).all()
    values = [grade.grade for grade in submitted]

    by_course = []
    for course in courses:
        course_values = [row[0] for row in db.query(Grade.grade).filter(Grade.course_id == course.id).all()]
        by_course.append({
            "course_id": course.id,
            "course_name": course.name,
            "course_code": course.code,
            "students_enrolled": len(course.enrolled_students),
            "grades_submitted": len(course_values),
            "average_grade": _average(course_values),
        })

    return {
        "role": Role.TEACHER.value,
        "teacher_info": {
            "name": teacher.name,
            "email": teacher.email,
            "department": teacher.department.name if teacher.department is not None else None,
            "specialization": teacher.specialization,
        },
        "counts": {
            "courses_teaching": len(courses),
            "total_students": sum(entry["students_enrolled"] for entry in by_course),
            "grades_submitted": len(submitted),
            "average_grade": _average(values),
        },
        "stats_by_course": by_course,
        "grade_distribution": grade_distribution(values),
        "recent_grades": [
            {
                "student": grade.student.name if grade.student is not None else None,
                "matricule": grade.student.matricule if grade.student is not None else None,
                "course": grade.course.name if grade.course is not None else None,
                "code": grade.course.code if grade.course is not None else None,
                "grade": grade.grade,
                "exam_type": grade.exam_type,
                "date": grade.created_at,
            }
            for grade in submitted[:5]
        ],
    }


def student_stats(db: Session, student_id: str) -> Dict:
    student = db.query(Student).filter(Student.id == student_id).first()
    if student is None:
        raise NotFoundException(detail="Student not found")

    enrolled = (
        db.query(func.count(course_enrollment.c.course_id))
        .filter(course_enrollment.c.student_id == student_id)
        .scalar()
    )
    grades = db.query(Grade).filter(Grade.student_id == student_id).order_by(Grade.created_at.desc()).all()
    values = [grade.grade for grade in grades]

    per_course: Dict[str, Dict] = {}
    for grade in grades:
        entry = per_course.setdefault(grade.course_id, {
            "course_name": grade.course.name,
            "course_code": grade.course.code,
            "values": [],
        })
        entry["values"].append(grade.grade)

    by_course = [
        {"course_name": entry["course_name"], "course_code": entry["course_code"],
         "average": _average(entry["values"]), "count": len(entry["values"])}
        for entry in per_course.values()
    ]
    by_course.sort(key=lambda entry: entry["average"], reverse=True)

    statuses = dict(
        db.query(Attendance.status, func.count(Attendance.id))
        .filter(Attendance.student_id == student_id)
        .group_by(Attendance.status)
        .all()
    )

    return {
        "role": Role.STUDENT.value,
        "student_info": {
            "name": student.name,
            "matricule": student.matricule,
            "department": student.department.name if student.department is not None else None,
        },
        "counts": {
            "enrolled_courses": enrolled,
            "total_grades": len(grades),
            "average_grade": _average(values),
            "attendance_rate": attendance_rate(statuses.get("present", 0), statuses.get("late", 0), sum(statuses.values())),
        },
        "grades_by_course": by_course,
        "grade_distribution": grade_distribution(values),
        "recent_grades": [
            {
                "course": grade.course.name,
                "code": grade.course.code,
                "grade": grade.grade,
                "exam_type": grade.exam_type,
                "date": grade.created_at,
            }
            for grade in grades[:5]
        ],
    }


@stats_router.get("")
def get_stats(auth: CanViewDashboard, db: Session = Depends(get_db)):

    if auth.role == Role.STUDENT:
        return ok(student_stats(db, auth.principal.get_related_id_or_throw()))

    if auth.role == Role.TEACHER:
        return ok(teacher_stats(db, auth.principal.get_related_id_or_throw()))

    return ok(global_stats(db))
