import asyncio

import typer
import uvicorn

from oauthlogin.core.config import settings

app = typer.Typer(help="OAuthLogin CLI")


@app.command()
def run(
    host: str = "0.0.0.0",
    port: int = 8000,
    reload: bool = False,
) -> None:
    """
    Run the FastAPI server
    """
    uvicorn.run(
        "oauthlogin.main:app",
        host=host,
        port=port,
        reload=reload,
    )


@app.command("init-db")
def init_db() -> None:
    """
    Create the account tables
    """
    from oauthlogin.core.postgres import create_tables

    asyncio.run(create_tables())
    typer.echo("Account tables created.")


@app.command("check-config")
def check_config() -> None:
    """
    Report whether the provider settings are complete
    """
    if settings.is_configured:
        typer.echo("OAuth login is configured.")
        return
    typer.echo("OAuth login is NOT configured.", err=True)
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
