import click
from sqlalchemy import func

from campus_backend.database import get_db
from campus_backend.interface.tokens import encrypt_password
from campus_backend.model.auth import User
from campus_backend.permissions.matrix import Role


@click.command()
@click.option("--email", "-e", "email", prompt=True)
@click.option("--name", "-n", "name", prompt=True)
@click.option("--password", "-p", "password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--role", "-r", "role", type=click.Choice([role.value for role in Role]), default=Role.STUDENT.value, show_default=True)
@click.option("--related-id", "related_id", default=None, help="Teacher or student record the account represents")
def create_user(email, name, password, role, related_id):

    if role != Role.ADMIN.value and related_id is None:
        click.secho(f"Warning: {role} account without a related record cannot access scoped data", fg="yellow")

    with next(get_db()) as db:

        if db.query(User.id).filter(func.lower(User.email) == email.lower()).first() is not None:
            raise click.ClickException(f"A user with email {email} already exists")

        user = User(
            name=name,
            email=email.lower(),
            password=encrypt_password(password),
            role=role,
            related_id=related_id,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        click.secho(f"Created {role} {user.email} ({user.id})", fg="green")


@click.group()
def users():
    pass

users.add_command(create_user,"create")
