from marshmallow import EXCLUDE, ValidationError as SchemaError

from ..errors import ValidationError


def validate_or_abort(schema, payload):
    """
    Load a request body through a marshmallow schema.
    Unknown keys are dropped; field errors become a 400 VALIDATION_ERROR with
    the per-field messages as details.
    """
    try:
        return schema.load(payload or {}, unknown=EXCLUDE)
    except SchemaError as e:
        raise ValidationError(details=e.messages) from e
