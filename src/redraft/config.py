import html
import os
from typing import Mapping, Optional

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)

ENV_PREFIX = "REDRAFT_"


class EngineConfig(BaseModel):
    """
    Tunables shared by the patch engine and the highlight scheduler.
    """

    highlight_seconds: float = Field(3.0, ge=0, description="How long a freshly patched span stays highlighted.")
    marker_tag: str = Field("mark", min_length=1, description="Tag name used to wrap freshly patched text.")
    marker_attribute: str = Field(
        "data-suggestion-id",
        min_length=1,
        description="Attribute carrying the suggestion id on the marker tag.",
    )
    add_separator: str = Field(" ", description="Inserted between the anchor (or document end) and added text.")
    escape_suggested: bool = Field(True, description="HTML-escape suggested text before splicing it into markup.")

    def marker_open(self, suggestion_id: str) -> str:
        # Ids come from the generator; escape them so they cannot end the tag
        return f'<{self.marker_tag} {self.marker_attribute}="{html.escape(suggestion_id, quote=True)}">'

    def marker_close(self) -> str:
        return f"</{self.marker_tag}>"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """
        Builds a config from REDRAFT_* environment variables.
        Unset variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        values = {}

        seconds = env.get(f"{ENV_PREFIX}HIGHLIGHT_SECONDS")
        if seconds:
            try:
                values["highlight_seconds"] = float(seconds)
            except ValueError:
                logger.warning(f"Ignoring invalid {ENV_PREFIX}HIGHLIGHT_SECONDS: '{seconds}'")

        tag = env.get(f"{ENV_PREFIX}MARKER_TAG")
        if tag:
            values["marker_tag"] = tag

        separator = env.get(f"{ENV_PREFIX}ADD_SEPARATOR")
        if separator is not None:
            values["add_separator"] = separator

        return cls(**values)
