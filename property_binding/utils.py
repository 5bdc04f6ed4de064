'''
methods to analysis the destination types and convert the raw text values.
'''
import re
import sys
import types
import warnings
from dataclasses import fields, is_dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from functools import lru_cache, partial
from inspect import isclass
from types import MappingProxyType
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    Literal,
    Mapping,
    Optional,
    Tuple,
    Type,
    Union,
    get_type_hints,
)

from .errors import InvalidEnumValue, PropertyBindingError, TypeConversionError
from .types import (
    UUID,
    DestinationType,
    FieldDescriptor,
    FieldKind,
    Properties,
    Property,
    fold_name,
)

_UnionType = getattr(types, 'UnionType', None)

_INTEGER_RE = re.compile(r'[+-]?[0-9]+')
_NUMBER_RE = re.compile(r'[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?')
_RFC3339_RE = re.compile(
    r'(?P<year>[0-9]{4})-(?P<month>[0-9]{2})-(?P<day>[0-9]{2})'
    r'[Tt ](?P<hour>[0-9]{2}):(?P<minute>[0-9]{2}):(?P<second>[0-9]{2})'
    r'(?:\.(?P<fraction>[0-9]+))?'
    r'(?P<offset>[Zz]|[+-][0-9]{2}:[0-9]{2})'
)


def identity_type(x):
    '''
        Identity function that returns the input value unchanged.

        Used as the conversion of text fields, the raw value is neither trimmed
        nor validated.
    '''
    return x


def bool_type_fn(val: str) -> bool:
    lowered = val.lower()
    if lowered == 'true':
        return True
    if lowered == 'false':
        return False
    raise TypeConversionError(val, 'boolean')


_FLAG_VALUES = {
    '1': True, 't': True, 'T': True, 'TRUE': True, 'true': True, 'True': True,
    '0': False, 'f': False, 'F': False, 'FALSE': False, 'false': False,
    'False': False,
}


def flag_type_fn(val: str) -> bool:
    '''
        Lenient boolean used for named flags outside of a schema. Accepts
        `1`, `t`, `true`, `0`, `f`, `false` in lower, upper or title case.
    '''
    if val not in _FLAG_VALUES:
        raise TypeConversionError(val, 'boolean')
    return _FLAG_VALUES[val]


def int_type_fn(val: str) -> int:
    if not _INTEGER_RE.fullmatch(val):
        raise TypeConversionError(val, 'integer')
    return int(val)


def number_type_fn(val: str) -> float:
    if not _NUMBER_RE.fullmatch(val):
        raise TypeConversionError(val, 'number')
    return float(val)


def datetime_type_fn(val: str) -> datetime:
    '''
        Convert an RFC 3339 date-time to a timezone-aware datetime.

        Parameters:
        - val (`str`):
            The text, e.g. `2018-01-02T00:00:00Z` or `2023-09-10T15:31:59.5-05:00`.

        Returns:
        - `datetime`
            The parsed instant. Fractions beyond microseconds are truncated.

        Raises:
        - `TypeConversionError`:
            If the text is not an RFC 3339 date-time.
    '''
    matched = _RFC3339_RE.fullmatch(val)
    if matched is None:
        raise TypeConversionError(val, 'datetime')

    offset = matched.group('offset')
    if offset in ('Z', 'z'):
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == '-' else 1
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        if hours > 23 or minutes > 59:
            raise TypeConversionError(val, 'datetime')
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))

    fraction = matched.group('fraction') or ''
    try:
        return datetime(
            int(matched.group('year')),
            int(matched.group('month')),
            int(matched.group('day')),
            int(matched.group('hour')),
            int(matched.group('minute')),
            int(matched.group('second')),
            int(fraction[:6].ljust(6, '0')),
            tzinfo=tz
        )
    except ValueError as e:
        raise TypeConversionError(val, 'datetime') from e


def format_datetime(val: datetime) -> str:
    '''
        Render a datetime in RFC 3339, the format accepted by `datetime_type_fn`.

        Naive datetimes are taken as local time. A zero UTC offset is written as `Z`.
    '''
    if val.tzinfo is None:
        val = val.astimezone()
    text = val.isoformat()
    if text.endswith('+00:00'):
        text = text[:-len('+00:00')] + 'Z'
    return text


def enum_type_fn(val: str, enum_type: Type[Enum]) -> Enum:
    '''
        Convert a string to an enum value.

        The first member whose value, converted to text, equals `val` is returned.
        The member names are tried afterwards.

        Raises:
        - `InvalidEnumValue`:
            If no member matches.
    '''
    for item in enum_type:
        if str(item.value) == val:
            return item
    member = enum_type.__members__.get(val)
    if member is not None:
        return member

    raise InvalidEnumValue(val)


def validated_enum_type_fn(val: str, enum_type: Type[str]) -> str:
    '''
        Wrap the text into a text-backed enum type and check it with its own
        `is_valid()` predicate.
    '''
    item = enum_type(val)
    if not item.is_valid():
        raise InvalidEnumValue(val)
    return item


def literal_type_fn(val: str, choices: Tuple[Any, ...]) -> Any:
    for choice in choices:
        if str(choice) == val:
            return choice

    raise InvalidEnumValue(val)


def is_validated_enum(dtype: Any) -> bool:
    return isclass(dtype) and issubclass(dtype, str) and callable(
        getattr(dtype, 'is_valid', None)
    )


def _unwrap_optional(dtype: Any) -> Tuple[Any, bool]:
    origin_type = getattr(dtype, '__origin__', dtype)
    if origin_type is Union or (
        _UnionType is not None and isinstance(dtype, _UnionType)
    ):
        dtype_generics = [
            t for t in dtype.__args__ if t is not type(None)
        ]
        if len(dtype_generics) == 1:
            return dtype_generics[0], len(dtype.__args__) > 1
    return dtype, False


def _analysis_type(dtype: Any) -> Tuple[Optional[Callable], FieldKind, bool]:
    dtype, optional = _unwrap_optional(dtype)

    if dtype is bool:
        return bool_type_fn, FieldKind.Bool, optional
    if getattr(dtype, '__origin__', None) is Literal:
        return partial(
            literal_type_fn, choices=dtype.__args__
        ), FieldKind.Enum, optional
    if not isclass(dtype):
        return None, FieldKind.Unknown, optional
    if issubclass(dtype, Enum):
        return partial(enum_type_fn, enum_type=dtype), FieldKind.Enum, optional
    if issubclass(dtype, UUID):
        return dtype, FieldKind.UUID, optional
    if is_validated_enum(dtype):
        return partial(
            validated_enum_type_fn, enum_type=dtype
        ), FieldKind.Enum, optional
    if issubclass(dtype, str):
        return (
            identity_type if dtype is str else dtype
        ), FieldKind.String, optional
    if issubclass(dtype, int):
        return int_type_fn if dtype is int else (
            lambda x: dtype(int_type_fn(x))
        ), FieldKind.Integer, optional
    if issubclass(dtype, float):
        return number_type_fn, FieldKind.Number, optional
    if issubclass(dtype, datetime):
        return datetime_type_fn, FieldKind.DateTime, optional

    return None, FieldKind.Unknown, optional


def analysis_field(
    name: str, annotation: Any, metadata: Mapping = MappingProxyType({})
) -> FieldDescriptor:
    convert, kind, optional = _analysis_type(annotation)

    if metadata.get('type', None):
        if convert is not None:
            warnings.warn(
                f'The type for "{name}" will be occupied with meta.',
                UserWarning
            )
        convert = metadata.get('type')

    return FieldDescriptor(
        name=name,
        kind=kind,
        optional=optional,
        convert=convert,
        annotation=annotation,
        metadata=metadata
    )


def _resolve_hints(clz: type) -> Dict[str, Any]:
    try:
        return get_type_hints(clz)
    except NameError:
        pass

    # resolve the annotations one by one, keeping the ones that can't be
    hints: Dict[str, Any] = {}
    for base in reversed(clz.__mro__):
        module = sys.modules.get(base.__module__, None)
        globalns = getattr(module, '__dict__', {})
        localns = dict(vars(base))
        for name, annotation in getattr(base, '__annotations__', {}).items():
            if isinstance(annotation, str):
                try:
                    annotation = eval(annotation, globalns, localns)
                except NameError:
                    warnings.warn(
                        f'The annotation "{annotation}" of "{name}" in {clz.__name__} can\'t be resolved.',
                        UserWarning
                    )
            hints[name] = annotation
    return hints


@lru_cache(maxsize=None)
def describe_destination(
    clz: Type[DestinationType]
) -> Mapping[str, FieldDescriptor]:
    '''
        Build the field table of a destination type.

        The table is built once per type and maps each public field name to its
        descriptor, in declaration order. Dataclass fields declared with
        `init=False` and names starting with `_` are not part of it.

        Parameters:
        - clz (`Type[DestinationType]`): a dataclass or a class with annotated attributes.

        Returns:
        - `Mapping[str, FieldDescriptor]`, a read-only view.
    '''
    hints = _resolve_hints(clz)
    table: Dict[str, FieldDescriptor] = {}
    if is_dataclass(clz):
        for field in fields(clz):
            if not field.init or field.name.startswith('_'):
                continue
            table[field.name] = analysis_field(
                field.name, hints.get(field.name, field.type), field.metadata
            )
    else:
        for name, annotation in hints.items():
            if name.startswith('_') or getattr(
                annotation, '__origin__', None
            ) is ClassVar:
                continue
            table[name] = analysis_field(name, annotation)

    return MappingProxyType(table)


def find_descriptor(clz: type, name: str) -> Optional[FieldDescriptor]:
    table = describe_destination(clz)
    descriptor = table.get(name)
    if descriptor is not None:
        return descriptor
    folded = fold_name(name)
    for field_name, descriptor in table.items():
        if fold_name(field_name) == folded:
            return descriptor
    return None


def destination_type(destination: Any) -> type:
    return destination if isclass(destination) else type(destination)


def coerce_value(descriptor: FieldDescriptor, val: str) -> Any:
    '''
        Convert the raw text to the type of the destination field.

        Errors of the built-in conversions are raised unchanged. Other errors
        from conversion functions given through field metadata are reported as
        `TypeConversionError`.
    '''
    try:
        return descriptor.coerce(val)
    except PropertyBindingError:
        raise
    except (TypeError, ValueError) as e:
        raise TypeConversionError(val, f'property {descriptor.name}') from e


def get_properties(destination: Any) -> Properties:
    '''
        Derive the schema of a destination type.

        One `Property` is emitted per bindable field, in declaration order. Unless
        the field carries `PropertyField` metadata, the property is optional and
        has no default.

        Parameters:
        - destination: an instance of the destination type, or the type itself.

        Returns:
        - `Properties`
    '''
    clz = destination_type(destination)
    properties = Properties()
    for name, descriptor in describe_destination(clz).items():
        if descriptor.metadata.get('exclude', False):
            continue
        if not descriptor.bindable:
            warnings.warn(
                f'The field "{name}" of {clz.__name__} is of an unsupported type and is not bindable.',
                UserWarning
            )
            continue
        default = descriptor.metadata.get('input_default', None)
        if callable(default):
            default = default()
        properties.append(
            Property(
                name=name,
                required=descriptor.metadata.get('required', False),
                default=default
            )
        )

    return properties
