import click
import uvicorn

from .users import users
from .permissions import permissions

@click.group()
def cli():
    pass

@click.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@click.option("--reload", is_flag=True, default=False)
def serve(host, port, reload):
    uvicorn.run("campus_backend.server:app", host=host, port=port, reload=reload)

cli.add_command(users,"users")
cli.add_command(permissions,"permissions")
cli.add_command(serve,"serve")

if __name__ == '__main__':
    cli()
