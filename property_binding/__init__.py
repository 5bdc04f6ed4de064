'''
Bind `key=value` command-line inputs to the typed fields of a destination record.
'''
from .binder import (
    PropertyBinder,
    generate_usage_string,
    get_bool_arg,
    load_properties,
    load_properties_from_input,
    parse_args,
)
from .errors import (
    InvalidEnumValue,
    MalformedInputError,
    MissingRequiredProperty,
    PropertyBindingError,
    TypeConversionError,
    UnknownPropertyError,
)
from .types import (
    UUID,
    FieldKind,
    Input,
    Properties,
    Property,
    PropertyField,
    ValidatedEnum,
)
from .utils import describe_destination, format_datetime, get_properties

Field = PropertyField
