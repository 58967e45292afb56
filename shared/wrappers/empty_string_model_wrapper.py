import re
from typing import Any

from pydantic import BaseModel, model_validator

INVISIBLE_CHARS_PATTERN = re.compile(
    r'[\u200e\u200f\u202a-\u202e\u2066-\u2069\ufeff]')


def deep_clean(value: Any):
    """Recursively strip strings, drop invisible chars and turn blanks into None."""
    if isinstance(value, dict):
        return {k: deep_clean(v) for k, v in value.items()}

    if isinstance(value, list):
        return [deep_clean(v) for v in value]

    if isinstance(value, str):
        cleaned = INVISIBLE_CHARS_PATTERN.sub("", value).strip()
        return None if cleaned == "" else cleaned

    return value


class EmptyStringModel(BaseModel):
    """
    Base for request payloads coming from admin forms.

    Form fields left empty arrive as "" (or as copy-pasted text with
    direction marks around it); they are normalised to None before
    validation so optional UUID/date/int fields do not fail on them.
    """

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }

    @model_validator(mode="before")
    @classmethod
    def clean_input(cls, values):
        if isinstance(values, dict):
            return deep_clean(values)
        return values
