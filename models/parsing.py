import logging
from typing import Any, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class ParseError(ValueError):
    """A backend record could not be normalized into its view model"""

    def __init__(self, model: str, errors: Any):
        super().__init__(f"Invalid {model} record: {errors}")
        self.model = model
        self.errors = errors


def parse_record(model: Type[M], raw: Any) -> M:
    if not isinstance(raw, dict):
        raise ParseError(model.__name__, f"expected object, got {type(raw).__name__}")
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise ParseError(model.__name__, e.errors(include_url=False)) from e


def parse_records(model: Type[M], raws: Any) -> List[M]:
    """Normalize a list of records, dropping (and logging) the ones that do not parse"""
    records = []
    for raw in raws or []:
        try:
            records.append(parse_record(model, raw))
        except ParseError as e:
            logger.warning(f"Skipping record: {e}")
    return records
