import click

from campus_backend.permissions.matrix import PROTECTED_PREFIXES, ROLE_ROUTES, Role, can_access_route, get_permissions, match_prefix


@click.command()
@click.argument("role", required=False, type=click.Choice([role.value for role in Role]))
def show_permissions(role):

    roles = [Role(role)] if role else list(Role)

    for current in roles:
        click.secho(current.value, bold=True)
        for capability, granted in get_permissions(current).items():
            mark = click.style("yes", fg="green") if granted else click.style("no", fg="red")
            click.echo(f"  {capability:<28} {mark}")


@click.command()
def show_routes():

    for prefix in PROTECTED_PREFIXES:
        owners = [role.value for role, prefixes in ROLE_ROUTES.items() if prefix in prefixes]
        click.echo(f"{prefix:<14} {', '.join(owners)}")


@click.command()
@click.argument("role", type=click.Choice([role.value for role in Role]))
@click.argument("path")
@click.pass_context
def check_route(ctx, role, path):

    prefix = match_prefix(path, PROTECTED_PREFIXES)

    if prefix is None:
        click.echo(f"{path} is not protected")
        return

    if can_access_route(role, path):
        click.secho(f"{role} may open {path} (section {prefix})", fg="green")
    else:
        click.secho(f"{role} is redirected from {path} (section {prefix})", fg="red")
        ctx.exit(1)


@click.group()
def permissions():
    pass

permissions.add_command(show_permissions,"show")
permissions.add_command(show_routes,"routes")
permissions.add_command(check_route,"check")
