# copilot_server/schemas/base.py
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import SQLModel


class CamelModel(SQLModel):
    """
    Base for request/response bodies.

    The desktop client speaks camelCase (`imageBase64`, `dailyLimit`,
    `todayUsage`, ...). Responses are serialized by alias; requests accept
    either the camelCase alias or the Python field name.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
