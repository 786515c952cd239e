"""
Settings for the formatter and the compatibility rewriter.

Settings come from ``mercury.json`` in the working directory, then
``~/.mercury/mercury.json``, then the defaults below.
"""
import json
import os
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from luau.errors import ConfigError

CONFIG_FILE = "mercury.json"


class MercurySettings(BaseModel):
    """Options shared by ``format`` and ``compatibility``."""
    model_config = ConfigDict(extra="forbid")

    indent: str = "\t"
    call_parentheses: Literal["elide", "keep"] = "elide"
    max_iterations: int = Field(default=64, ge=1)
    seed: Optional[int] = None


def default_config_paths():
    return [CONFIG_FILE, os.path.expanduser(os.path.join("~", ".mercury", CONFIG_FILE))]


def load_settings(path=None):
    """
    Load settings from ``path`` or the first existing default location.

    Raises:
        ConfigError: If the file is not valid JSON or fails validation
    """
    paths = [path] if path else default_config_paths()
    for p in paths:
        if not os.path.exists(p):
            if path:
                raise ConfigError(f"settings file not found: {p}")
            continue
        try:
            with open(p, "r") as f:
                data = json.load(f)
            return MercurySettings.model_validate(data)
        except json.JSONDecodeError as e:
            raise ConfigError(f"{p} is not valid JSON: {e.msg}", line_number=e.lineno, column=e.colno)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigError(f"invalid settings in {p}: {problems}")
    return MercurySettings()
