"""
HTML components for the server rendered pages.

Each component renders to a string; values coming from users or the database
are escaped in the component that prints them.
"""

import html
from typing import Dict, List, Optional, Sequence, Tuple

from campus_backend.permissions.matrix import PROTECTED_PREFIXES, ROOT_PATH, can_access_route, match_prefix
from campus_backend.permissions.principal import Principal

NAV_LABELS: Dict[str, str] = {
    ROOT_PATH: "Dashboard",
    "/students": "Students",
    "/teachers": "Teachers",
    "/courses": "Courses",
    "/groups": "Groups",
    "/departments": "Departments",
    "/grades": "Grades",
}


class Component:

    @staticmethod
    def escape(value) -> str:
        return html.escape("" if value is None else str(value), quote=True)

    def render(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.render()


class Navigation(Component):
    """Sidebar links limited to the sections the principal's role may open."""

    def __init__(self, principal: Optional[Principal], current_path: str = ROOT_PATH):
        self.principal = principal
        self.current_path = current_path

    def items(self) -> List[Tuple[str, str]]:
        if self.principal is None:
            return []
        return [
            (prefix, NAV_LABELS.get(prefix, prefix.strip("/").capitalize()))
            for prefix in PROTECTED_PREFIXES
            if can_access_route(self.principal.role, prefix)
        ]

    def render(self) -> str:
        if self.principal is None:
            return '<nav class="sidebar"><a href="/login">Sign in</a></nav>'

        active = match_prefix(self.current_path, PROTECTED_PREFIXES)
        links = []
        for href, label in self.items():
            current = ' aria-current="page"' if href == active else ""
            links.append(f'<li><a href="{href}"{current}>{self.escape(label)}</a></li>')

        return f"""
    <nav class="sidebar" aria-label="Main navigation">
        <div class="user-info">
            <span class="user-name">{self.escape(self.principal.name or self.principal.email)}</span>
            <span class="user-role">{self.escape(self.principal.role.value)}</span>
        </div>
        <ul>
            {''.join(links)}
        </ul>
        <button type="button" onclick="fetch('/api/auth/logout', {{method: 'POST'}}).then(() => window.location.assign('/login'))">Sign out</button>
    </nav>"""


class Table(Component):

    def __init__(self, columns: Sequence[str], rows: Sequence[Sequence], empty: str = "Nothing to show yet."):
        self.columns = columns
        self.rows = rows
        self.empty = empty

    def render(self) -> str:
        if not self.rows:
            return f'<p class="empty">{self.escape(self.empty)}</p>'

        head = "".join(f"<th>{self.escape(column)}</th>" for column in self.columns)
        body = "".join(
            "<tr>" + "".join(f"<td>{self.escape(cell)}</td>" for cell in row) + "</tr>"
            for row in self.rows
        )
        return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


class LoginForm(Component):

    def __init__(self, error: Optional[str] = None):
        self.error = error

    def render(self) -> str:
        error = f'<p class="error" role="alert">{self.escape(self.error)}</p>' if self.error else ""
        return f"""
    <form class="login" method="post" action="/api/auth/login">
        {error}
        <label for="email">Email</label>
        <input id="email" name="email" type="email" required autocomplete="username">
        <label for="password">Password</label>
        <input id="password" name="password" type="password" required autocomplete="current-password">
        <button type="submit">Sign in</button>
    </form>
    <script>
    // The login endpoint takes JSON and answers with the session cookie
    document.querySelector("form.login").addEventListener("submit", async (event) => {{
        event.preventDefault();
        const form = event.target;
        const res = await fetch(form.action, {{
            method: "POST",
            headers: {{"Content-Type": "application/json"}},
            body: JSON.stringify({{email: form.email.value, password: form.password.value}}),
        }});
        if (res.ok) {{ window.location.assign("/"); return; }}
        const body = await res.json();
        alert(body.error || "Sign in failed");
    }});
    </script>"""


class Layout(Component):
    """Complete HTML document around pre-rendered ``content``."""

    def __init__(self, title: str, content: str, principal: Optional[Principal] = None,
                 current_path: str = ROOT_PATH, show_nav: bool = True):
        self.title = title
        self.content = content
        self.principal = principal
        self.current_path = current_path
        self.show_nav = show_nav

    def render(self) -> str:
        nav_html = Navigation(self.principal, self.current_path).render() if self.show_nav else ""

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{self.escape(self.title)} - Campus</title>
</head>
<body>
    {nav_html}
    <main id="main-content" role="main">
        <h1>{self.escape(self.title)}</h1>
        {self.content}
    </main>
</body>
</html>"""
