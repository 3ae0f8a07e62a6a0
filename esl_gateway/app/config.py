"""Runtime configuration for the outbound event-socket gateway."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for gateway runtime behavior.

    Values are loaded from environment variables, with `.env` used for local
    development defaults.

    Attributes:
        ESL_LISTEN_HOST: Interface the outbound socket listener binds to.
        ESL_LISTEN_PORT: Port the switch dials for every call leg (the
            ``socket`` dialplan application target).
        STATUS_PORT: Port for the health/status HTTP app when run directly.
        SESSION_HANDLER: Built-in handler name or ``module:attribute`` path
            of the session handler driving each call.
        ASYNC_API_KEYWORD: Keyword used to send administrative commands.
        READ_CHUNK_BYTES: Maximum bytes read from the socket per iteration.
        MAX_HEADER_BYTES: Largest header block accepted before the stream is
            treated as corrupt.
        INSTRUCTION_TIMEOUT_S: Seconds an instruction may stay unacknowledged
            before the connection is dropped; ``0`` disables the watchdog.
        WATCHDOG_INTERVAL_S: Polling cadence of the instruction watchdog.
        GREETING_SOUND: Sound file played by the ``greeting`` handler.
        DIGIT_PROMPT_SOUND: Prompt played while collecting a digit.
        INVALID_DIGIT_SOUND: Prompt played after an invalid entry.
        LOG_LEVEL: Application log verbosity.
        PROTOCOL_LOG_LEVEL: Log level for wire-protocol internals.
        VERBOSE_PROTOCOL_LOGGING: Logs every raw chunk sent and received
            (high volume).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ESL_LISTEN_HOST: str = "0.0.0.0"
    ESL_LISTEN_PORT: int = Field(default=8084, ge=1, le=65535)
    STATUS_PORT: int = Field(default=8085, ge=1, le=65535)
    SESSION_HANDLER: str = "park"
    ASYNC_API_KEYWORD: str = "bgapi"
    READ_CHUNK_BYTES: int = Field(default=4096, ge=1)
    MAX_HEADER_BYTES: int = Field(default=65536, ge=1024)
    INSTRUCTION_TIMEOUT_S: float = Field(default=0.0, ge=0)
    WATCHDOG_INTERVAL_S: float = Field(default=1.0, gt=0)
    GREETING_SOUND: str = "ivr/ivr-welcome.wav"
    DIGIT_PROMPT_SOUND: str = "ivr/ivr-please_enter_extension_followed_by_pound.wav"
    INVALID_DIGIT_SOUND: str = "ivr/ivr-that_was_an_invalid_entry.wav"
    LOG_LEVEL: str = "info"
    PROTOCOL_LOG_LEVEL: str = "info"
    VERBOSE_PROTOCOL_LOGGING: bool = False

    @property
    def listen_address(self) -> str:
        """Returns ``host:port`` as configured in the switch dialplan."""
        return f"{self.ESL_LISTEN_HOST}:{self.ESL_LISTEN_PORT}"


settings = Settings()
