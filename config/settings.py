from pydantic import Field
from pydantic_settings import BaseSettings


class BotSettings(BaseSettings):
    discord_token: str | None = Field(default=None, description="Discord bot token")
    database_url: str = Field(default="sqlite:///data/commando.db", description="Settings database URL")

    command_prefix: str = Field(default="!", description="Default command prefix")
    owner_ids: list[int] = Field(default_factory=list, description="User IDs of the bot owners")
    invite: str | None = Field(default=None, description="Support server invite shown in error replies")
    environment: str = Field(default="development", description="Environment")
    log_level: str = Field(default="INFO", description="Logging level")

    # Dispatcher behaviour
    command_editable_duration: int = Field(
        default=30,
        description="Seconds during which editing a command message re-runs the command",
    )
    non_command_editable: bool = Field(
        default=True,
        description="Whether editing a non-command message into a command runs it",
    )

    # Command loading
    commands_path: str | None = Field(
        default="bot_commands",
        description="Directory laid out as <group>/<command>.py to register on startup",
    )

    # Development settings
    debug: bool = Field(default=False, description="Enable debug mode")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = BotSettings()
