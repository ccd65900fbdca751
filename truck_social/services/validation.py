"""Input parsing shared by the managers: pydantic errors become typed ValidationError."""
from typing import Any, Iterable, List, Mapping, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from truck_social.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_fields(schema: Type[ModelT], fields: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """Validate a mapping (or pass through an already-parsed model) against schema."""
    if isinstance(fields, schema):
        return fields
    if isinstance(fields, BaseModel):
        fields = fields.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(fields)
    except PydanticValidationError as e:
        errors = [
            {"loc": [str(p) for p in err.get("loc", ())], "msg": err.get("msg"), "type": err.get("type")}
            for err in e.errors()
        ]
        raise ValidationError(
            f"Invalid {schema.__name__}",
            code="invalid_fields",
            extra={"errors": errors},
        ) from e


def unique_strings(values: Iterable[Any]) -> List[str]:
    """Strip, drop empties and duplicates, keep first-seen order."""
    seen = set()
    out: List[str] = []
    for v in values:
        s = str(v.value if hasattr(v, "value") else v).strip()
        if s and s not in seen:
            seen.add(s)
            out.append(s)
    return out
