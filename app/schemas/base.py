"""
Base de schemas: JSON en camelCase (patientName, weekDays...) y atributos
en snake_case del lado Python.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
