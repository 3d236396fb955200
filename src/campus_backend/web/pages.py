from typing import Callable, Dict, List, Optional, Sequence, Tuple
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from campus_backend.database import get_db
from campus_backend.model.grade import Grade
from campus_backend.model.university import Department, Student, Teacher
from campus_backend.permissions.auth import get_current_principal
from campus_backend.permissions.guards import Authorized
from campus_backend.permissions.matrix import ROOT_PATH, can_access_route
from campus_backend.permissions.principal import Principal
from campus_backend.permissions.scoping import CourseScope, GradeScope, GroupScope, StudentScope
from campus_backend.web.components import NAV_LABELS, Layout, LoginForm, Navigation, Table

page_router = APIRouter(include_in_schema=False)

Rows = Tuple[Sequence[str], List[Sequence]]


def _students(auth: Authorized, db: Session) -> Rows:
    students = StudentScope.query(auth, db).order_by(Student.name).all()
    return ("Matricule", "Name", "Email", "Year", "Status"), [
        (s.matricule, s.name, s.email, s.current_year, s.status) for s in students
    ]


def _teachers(auth: Authorized, db: Session) -> Rows:
    teachers = db.query(Teacher).order_by(Teacher.name).all()
    return ("Name", "Email", "Specialization", "Grade editing"), [
        (t.name, t.email, t.specialization or "", "yes" if t.can_edit_grades else "no") for t in teachers
    ]


def _courses(auth: Authorized, db: Session) -> Rows:
    courses = CourseScope.query(auth, db).all()
    return ("Code", "Name", "Credits", "Semester", "Year"), [
        (c.code, c.name, c.credits, c.semester, c.year) for c in sorted(courses, key=lambda c: c.code)
    ]


def _groups(auth: Authorized, db: Session) -> Rows:
    groups = GroupScope.query(auth, db).all()
    return ("Code", "Name", "Level", "Students", "Capacity"), [
        (g.code, g.name, g.level, len(g.students), g.capacity) for g in sorted(groups, key=lambda g: g.code)
    ]


def _departments(auth: Authorized, db: Session) -> Rows:
    departments = db.query(Department).order_by(Department.code).all()
    return ("Code", "Name", "Head"), [(d.code, d.name, d.head or "") for d in departments]


def _grades(auth: Authorized, db: Session) -> Rows:
    grades = GradeScope.query(auth, db).order_by(Grade.created_at.desc()).all()
    return ("Student", "Course", "Exam", "Grade"), [
        (g.student.name, g.course.code, g.exam_type, f"{g.grade:g}") for g in grades
    ]


SECTIONS: Dict[str, Callable[[Authorized, Session], Rows]] = {
    "/students": _students,
    "/teachers": _teachers,
    "/courses": _courses,
    "/groups": _groups,
    "/departments": _departments,
    "/grades": _grades,
}


def _principal(request: Request, principal: Optional[Principal]) -> Optional[Principal]:
    return getattr(request.state, "principal", None) or principal


def render_section(path: str, principal: Principal, db: Session) -> str:
    columns, rows = SECTIONS[path](Authorized(principal.role, principal), db)
    return Layout(NAV_LABELS[path], Table(columns, rows).render(), principal, path).render()


@page_router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, principal: Optional[Principal] = Depends(get_current_principal)):

    if _principal(request, principal) is not None:
        return RedirectResponse(url=ROOT_PATH, status_code=303)

    return Layout("Sign in", LoginForm(request.query_params.get("error")).render(), show_nav=False).render()


@page_router.get("/", response_class=HTMLResponse)
def dashboard_page(request: Request, principal: Optional[Principal] = Depends(get_current_principal)):

    principal = _principal(request, principal)
    if principal is None:
        return RedirectResponse(url="/login", status_code=303)

    sections = "".join(
        f'<li><a href="{href}">{Navigation.escape(label)}</a></li>'
        for href, label in Navigation(principal, ROOT_PATH).items()
        if href != ROOT_PATH
    )
    greeting = f"<p>Welcome, {Navigation.escape(principal.name or principal.email)} ({principal.role.value}).</p>"

    return Layout("Dashboard", f"{greeting}<ul>{sections}</ul>", principal, ROOT_PATH).render()


def _section_page(path: str):

    def page(request: Request,
             principal: Optional[Principal] = Depends(get_current_principal),
             db: Session = Depends(get_db)):

        principal = _principal(request, principal)
        if principal is None:
            return RedirectResponse(url="/login", status_code=303)
        if not can_access_route(principal.role, path):
            return RedirectResponse(url=ROOT_PATH, status_code=303)

        return HTMLResponse(render_section(path, principal, db))

    page.__name__ = f"{path.strip('/')}_page"
    return page


for _path in SECTIONS:
    page_router.add_api_route(_path, _section_page(_path), methods=["GET"], response_class=HTMLResponse)
