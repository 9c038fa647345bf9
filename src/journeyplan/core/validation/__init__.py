"""Field error records, the validator contract and the validation processor."""

from journeyplan.core.validation.errors import FieldError, flatten_errors
from journeyplan.core.validation.fields import SimpleField, Validator, ValidatorContext
from journeyplan.core.validation.processor import process_validators
from journeyplan.core.validation.rules import is_empty, optional

__all__ = [
    "FieldError",
    "SimpleField",
    "Validator",
    "ValidatorContext",
    "flatten_errors",
    "is_empty",
    "optional",
    "process_validators",
]
