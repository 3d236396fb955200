import logging
from datetime import date
from typing import Dict, List, Literal, Optional
import pandas as pd
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from campus_backend.api.crud import get_or_404
from campus_backend.api.exceptions import BadRequestException
from campus_backend.api.responses import ok
from campus_backend.database import get_db
from campus_backend.model.grade import Grade
from campus_backend.model.university import Course, Student, Teacher
from campus_backend.permissions.guards import Authorized, RequirePermission
from campus_backend.permissions.matrix import Capability
from campus_backend.permissions.scoping import CourseScope, GradeScope, StudentScope

export_router = APIRouter()
logger = logging.getLogger(__name__)

CanExportData = RequirePermission(Capability.EXPORT_DATA)

ExportType = Literal['students', 'grades', 'courses', 'teachers', 'transcript']
ExportFormat = Literal['json', 'csv']

COLUMNS = {
    "students": ["matricule", "name", "email", "phone", "department", "group", "current_year", "academic_year", "status"],
    "grades": ["matricule", "student", "course", "code", "grade", "exam_type", "date", "teacher"],
    "courses": ["code", "name", "credits", "department", "teacher", "semester", "year"],
    "teachers": ["name", "email", "phone", "department", "specialization"],
}


def _name(entity) -> str:
    return entity.name if entity is not None else ""


def export_students(auth: Authorized, db: Session, department_id: Optional[str], group_id: Optional[str],
                    current_year: Optional[int], status: Optional[str]) -> List[Dict]:
    query = StudentScope.query(auth, db)

    if department_id is not None:
        query = query.filter(Student.department_id == department_id)
    if group_id is not None:
        query = query.filter(Student.group_id == group_id)
    if current_year is not None:
        query = query.filter(Student.current_year == current_year)
    if status is not None:
        query = query.filter(Student.status == status)

    return [
        {
            "matricule": student.matricule,
            "name": student.name,
            "email": student.email,
            "phone": student.phone or "",
            "department": _name(student.department),
            "group": _name(student.group),
            "current_year": student.current_year,
            "academic_year": student.academic_year,
            "status": student.status,
        }
        for student in query.order_by(Student.name).all()
    ]


def export_grades(auth: Authorized, db: Session, course_id: Optional[str]) -> List[Dict]:
    grades = GradeScope.query(auth, db, course_id=course_id).order_by(Grade.created_at.desc()).all()

    return [
        {
            "matricule": grade.student.matricule if grade.student is not None else "",
            "student": _name(grade.student),
            "course": _name(grade.course),
            "code": grade.course.code if grade.course is not None else "",
            "grade": grade.grade,
            "exam_type": grade.exam_type,
            "date": grade.created_at.date().isoformat() if grade.created_at is not None else "",
            "teacher": _name(grade.submitter),
        }
        for grade in grades
    ]


def export_courses(auth: Authorized, db: Session, department_id: Optional[str]) -> List[Dict]:
    query = CourseScope.query(auth, db)

    if department_id is not None:
        query = query.filter(Course.department_id == department_id)

    return [
        {
            "code": course.code,
            "name": course.name,
            "credits": course.credits,
            "department": _name(course.department),
            "teacher": _name(course.teacher),
            "semester": course.semester,
            "year": course.year,
        }
        for course in query.order_by(Course.code).all()
    ]


def export_teachers(db: Session, department_id: Optional[str]) -> List[Dict]:
    query = db.query(Teacher)

    if department_id is not None:
        query = query.filter(Teacher.department_id == department_id)

    return [
        {
            "name": teacher.name,
            "email": teacher.email,
            "phone": teacher.phone or "",
            "department": _name(teacher.department),
            "specialization": teacher.specialization or "",
        }
        for teacher in query.order_by(Teacher.name).all()
    ]


def transcript(auth: Authorized, db: Session, student_id: Optional[str]) -> Dict:
    if student_id is None:
        raise BadRequestException(detail="student_id is required for transcript")

    student = get_or_404(StudentScope.query(auth, db), Student, student_id)
    grades = db.query(Grade).filter(Grade.student_id == student.id).order_by(Grade.created_at.desc()).all()

    return {
        "student": {
            "name": student.name,
            "matricule": student.matricule,
            "department": _name(student.department),
            "current_year": student.current_year,
            "academic_year": student.academic_year,
        },
        "grades": [
            {
                "course": grade.course.name,
                "code": grade.course.code,
                "credits": grade.course.credits,
                "grade": grade.grade,
                "exam_type": grade.exam_type,
                "date": grade.created_at,
            }
            for grade in grades
        ],
        "summary": {
            "total_credits": sum(grade.course.credits for grade in grades),
            "average_grade": sum(grade.grade for grade in grades) / len(grades) if grades else 0,
            "total_courses": len(grades),
        },
    }


def to_csv(rows: List[Dict], columns: List[str]) -> str:
    return pd.DataFrame(rows, columns=columns).to_csv(index=False, sep=";")


@export_router.get("")
def export_data(auth: CanExportData,
                type: ExportType,
                format: ExportFormat = 'json',
                department_id: Optional[str] = None,
                course_id: Optional[str] = None,
                group_id: Optional[str] = None,
                current_year: Optional[int] = None,
                status: Optional[str] = None,
                student_id: Optional[str] = None,
                db: Session = Depends(get_db)):

    if type == "transcript":
        return ok(transcript(auth, db, student_id))

    if type == "students":
        rows = export_students(auth, db, department_id, group_id, current_year, status)
    elif type == "grades":
        rows = export_grades(auth, db, course_id)
    elif type == "courses":
        rows = export_courses(auth, db, department_id)
    else:
        rows = export_teachers(db, department_id)

    logger.info(f"Export of {len(rows)} {type} as {format} by {auth.principal.user_id}")

    if format == "csv":
        filename = f"{type}_{date.today().isoformat()}.csv"
        return Response(
            content=to_csv(rows, COLUMNS[type]),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return {
        "success": True,
        "data": rows,
        "meta": {"total": len(rows), "type": type, "exported_at": date.today().isoformat()},
    }
