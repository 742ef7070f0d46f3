"""Language model shared by the translator and the language picker."""

from pydantic import BaseModel, ConfigDict


class Language(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    name: str
