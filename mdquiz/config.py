import os
from typing import Literal, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel

ENV_PREFIX = "MDQUIZ_"


class RenderConfig(BaseModel):
    default_code_language: str = "text"
    link_target: Optional[str] = "_blank"
    quiz_confirm_mode: Literal["tap-twice", "button"] = "tap-twice"
    mermaid_src: str = "https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.min.js"
    katex_src: str = "https://cdn.jsdelivr.net/npm/katex@0.16.0/dist/katex.min.js"
    katex_css: str = "https://cdn.jsdelivr.net/npm/katex@0.16.0/dist/katex.min.css"
    log_level: str = "INFO"
    log_file: Optional[str] = None


def load_config(env_file: Optional[str] = None) -> RenderConfig:
    """Build a RenderConfig from MDQUIZ_* environment variables.

    A .env file (the given path, or one found from the working directory) is
    loaded first; variables already set in the environment win. An empty
    MDQUIZ_LINK_TARGET disables the link target attribute.
    """
    load_dotenv(env_file or find_dotenv(usecwd=True))
    data = {}
    for name in RenderConfig.model_fields:
        value = os.getenv(ENV_PREFIX + name.upper())
        if value is None:
            continue
        if name in ("link_target", "log_file") and value.strip() == "":
            data[name] = None
        else:
            data[name] = value.strip()
    return RenderConfig.model_validate(data)
