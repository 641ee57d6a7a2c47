import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

import typer

from config.settings import settings

from .core.client import CommandoClient
from .providers import SQLiteProvider

app = typer.Typer(
    name="commando",
    help="Command framework for Discord bots",
    add_completion=False,
)

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def create_client() -> CommandoClient:
    """Build a client with the default commands, the configured commands directory and SQLite settings."""
    client = CommandoClient(provider=SQLiteProvider())
    client.registry.register_defaults()

    if settings.commands_path:
        commands_path = Path(settings.commands_path)
        if commands_path.is_dir():
            for group_dir in sorted(commands_path.iterdir()):
                if group_dir.is_dir() and not group_dir.name.startswith("_") and group_dir.name not in client.registry.groups:
                    client.registry.register_group(group_dir.name)
            client.registry.register_commands_in(commands_path)
        else:
            logger.warning(f"Commands directory does not exist: {commands_path}")

    return client


@app.command()
def run(
    dev: bool = typer.Option(False, "--dev", help="Run in development mode"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Set log level"),
) -> None:
    """Run the bot."""
    if dev:
        os.environ["ENVIRONMENT"] = "development"
        log_level = log_level or "DEBUG"

    setup_logging(log_level or settings.log_level)

    client = create_client()
    client.run()


@app.command()
def init(
    directory: Optional[str] = typer.Option(None, help="Directory to initialize")
) -> None:
    """Initialize a new bot project."""
    target_dir = Path(directory) if directory else Path.cwd()

    if not target_dir.exists():
        target_dir.mkdir(parents=True)

    # Create basic structure
    (target_dir / "bot_commands").mkdir(exist_ok=True)
    (target_dir / "data").mkdir(exist_ok=True)

    # Create .env file
    env_file = target_dir / ".env"
    if not env_file.exists():
        env_content = """# Discord Bot Configuration
DISCORD_TOKEN=your_discord_bot_token_here
COMMAND_PREFIX=!
OWNER_IDS=[]
DATABASE_URL=sqlite:///data/commando.db
COMMANDS_PATH=bot_commands
ENVIRONMENT=development
LOG_LEVEL=INFO
"""
        env_file.write_text(env_content)

    typer.echo(f"✅ Bot project initialized in {target_dir}")


@app.command()
def db(
    action: str = typer.Argument(help="Action: create, reset"),
) -> None:
    """Settings database management commands."""
    async def run_db_command():
        from .database import db_manager

        try:
            if action == "create":
                await db_manager.create_tables()
                typer.echo("✅ Database tables created")
            elif action == "reset":
                confirm = typer.confirm("⚠️  This will delete all settings. Continue?")
                if confirm:
                    await db_manager.drop_tables()
                    await db_manager.create_tables()
                    typer.echo("✅ Database reset completed")
            else:
                typer.echo(f"Unknown action: {action}")
        finally:
            await db_manager.close()

    asyncio.run(run_db_command())


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
