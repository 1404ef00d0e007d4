"""Reusable base models for configuration and genesis documents."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    A base model that converts field names to camel case when serializing.

    For example, the field name `homestead_block` in a Python model will be
    represented as `homesteadBlock` when it is serialized to JSON.

    This matches the key style of execution-layer genesis documents.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
    )


class FrozenModel(CamelModel):
    """
    An immutable model that rejects unknown fields.

    Values are still coerced (e.g. "0" to 0) because most inputs arrive as
    command-line strings.
    """

    model_config = CamelModel.model_config | {
        "extra": "forbid",
        "frozen": True,
    }
