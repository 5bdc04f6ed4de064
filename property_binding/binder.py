'''
Bind `key=value` inputs typed at the command-line to the fields of a destination record.
'''
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type, Union

from .errors import (
    MalformedInputError,
    MissingRequiredProperty,
    PropertyBindingError,
    UnknownPropertyError,
)
from .types import DestinationType, FieldDescriptor, Input, Properties, Property, fold_name
from .utils import (
    coerce_value,
    destination_type,
    find_descriptor,
    flag_type_fn,
    get_properties,
)

USAGE_INDENT = '\n' + ' ' * 9


def parse_args(args: Sequence[str]) -> List[Input]:
    '''
        Split `key=value` tokens into inputs, keeping the order they were given in.

        Only the first `=` separates the key, the value may be empty or contain
        more `=` characters.

        Raises:
        - `MalformedInputError`:
            If a token has no `=` or an empty key.
    '''
    inputs = []
    for arg in args:
        key, sep, value = arg.partition('=')
        if not sep or not key:
            raise MalformedInputError(arg)
        inputs.append(Input(key=key, value=value))

    return inputs


def _resolve_field(clz: type, name: str) -> FieldDescriptor:
    descriptor = find_descriptor(clz, name)
    if descriptor is None or not descriptor.bindable:
        raise UnknownPropertyError(
            name, f'Property {name} is not a bindable field of {clz.__name__}'
        )
    return descriptor


def _index_inputs(inputs: Iterable[Input]) -> Dict[str, Input]:
    # later occurrences of a key overwrite the earlier ones
    return {fold_name(item.key): item for item in inputs}


def load_properties_from_input(
    destination: DestinationType,
    properties: Iterable[Property],
    inputs: Iterable[Input],
    strict: bool = False
) -> DestinationType:
    '''
        Bind the inputs to the destination, following the schema.

        The properties are processed in schema order. Each one takes the value of
        the input whose key matches its name case-insensitively (the last one when
        several match), or its default. Binding stops at the first error, fields
        bound before it stay bound.

        Parameters:
        - destination (`DestinationType`):
            The record to populate, it is modified in place.
        - properties (`Iterable[Property]`):
            The schema.
        - inputs (`Iterable[Input]`):
            The values supplied by the user.
        - strict (`bool`, optional):
            Reject inputs whose key matches no property instead of ignoring them.

        Returns:
        - The destination.

        Raises:
        - `MissingRequiredProperty`:
            A required property has neither an input nor a default.
        - `TypeConversionError` / `InvalidEnumValue`:
            A value can't be converted to the kind of its field.
        - `UnknownPropertyError`:
            A property is not a bindable field of the destination, or in strict
            mode, an input matches no property.
    '''
    clz = destination_type(destination)
    properties = list(properties)
    indexed = _index_inputs(inputs)

    if strict:
        known = {fold_name(prop.name) for prop in properties}
        for key, item in indexed.items():
            if key not in known:
                raise UnknownPropertyError(item.key)

    for prop in properties:
        descriptor = _resolve_field(clz, prop.name)
        item = indexed.get(fold_name(prop.name))
        if item is not None:
            value = item.value
        elif prop.default is not None:
            value = prop.default
        elif prop.required:
            raise MissingRequiredProperty(prop.name)
        else:
            continue

        descriptor.set(destination, coerce_value(descriptor, value))

    return destination


def load_properties(
    destination: DestinationType,
    properties: Iterable[Property],
    args: Sequence[str],
    strict: bool = False
) -> DestinationType:
    '''
        Parse the `key=value` tokens and bind them to the destination.

        See `parse_args` and `load_properties_from_input`.
    '''
    return load_properties_from_input(
        destination, properties, parse_args(args), strict=strict
    )


def get_bool_arg(inputs: Iterable[Input], key: str, default: bool) -> bool:
    '''
        Read a boolean named argument that is not part of any schema.

        The key is matched exactly and the first value that parses wins, see
        `flag_type_fn`. Missing or malformed values give `default`.
    '''
    for item in inputs:
        if item.key != key:
            continue
        try:
            return flag_type_fn(item.value)
        except PropertyBindingError:
            continue
    return default


def generate_usage_string(
    destination: Union[DestinationType, Type[DestinationType]],
    properties: Iterable[Property]
) -> str:
    '''
        Render the usage of the schema, one `Name=TYPE` entry per line.

        Optional properties are wrapped in brackets. Every entry, the first one
        included, starts on a new line indented with nine spaces:

        ```
        \\n         AccountID=STRING\\n         [CompanyName=STRING]
        ```
    '''
    clz = destination_type(destination)
    entries = []
    for prop in properties:
        descriptor = _resolve_field(clz, prop.name)
        entry = f'{prop.name}={descriptor.tag}'
        if not prop.required:
            entry = f'[{entry}]'
        entries.append(USAGE_INDENT + entry)

    return ''.join(entries)


class PropertyBinder:
    '''
        Derive a schema from a destination type once and bind command-line inputs
        with it many times.

        Parameters:
        - clz (`Type[DestinationType]`):
            The destination type.
        - required (`Iterable[str]`, optional):
            Names of the properties to mark as required.
        - defaults (`Optional[Dict[str, str]]`, optional):
            Textual defaults, by property name.
        - exclude (`Iterable[str]`, optional):
            Names of the properties to leave out.
        - sort (`bool`, optional):
            Put the required properties first. Defaults to True.
        - alphabetical (`bool`, optional):
            Order the properties by name when sorting. Defaults to True.
        - strict (`bool`, optional):
            Reject inputs that match no property. Defaults to False.

        Example:
        ```python
        @dataclass
        class Account:
            name: Optional[str] = None
            email: Optional[str] = None
            currency: Optional[str] = None

        binder = PropertyBinder(
            Account, required=['name'], defaults={'currency': 'USD'}
        )
        account = binder.parse(['name=Bob', 'email=bob@example.com'])
        print(binder.usage)
        ```
    '''

    def __init__(
        self,
        clz: Type[DestinationType],
        required: Iterable[str] = (),
        defaults: Optional[Dict[str, str]] = None,
        exclude: Iterable[str] = (),
        sort: bool = True,
        alphabetical: bool = True,
        strict: bool = False
    ) -> None:
        self._clz = clz
        self.strict = strict

        properties = get_properties(clz)
        for name in exclude:
            if not properties.remove(name):
                raise UnknownPropertyError(name)
        for name in required:
            self._lookup(properties, name).required = True
        for name, value in (defaults or {}).items():
            self._lookup(properties, name).default = value
        if sort:
            properties.sort(required_first=True, alphabetical=alphabetical)
        self._properties = properties

    @staticmethod
    def _lookup(properties: Properties, name: str) -> Property:
        prop = properties.get(name)
        if prop is None:
            raise UnknownPropertyError(name)
        return prop

    @property
    def properties(self) -> Properties:
        return self._properties

    @property
    def usage(self) -> str:
        return generate_usage_string(self._clz, self._properties)

    def bind(
        self, destination: DestinationType, args: Sequence[str]
    ) -> DestinationType:
        return load_properties(
            destination, self._properties, args, strict=self.strict
        )

    def parse(self, args: Sequence[str], **init_kwargs: Any) -> DestinationType:
        '''
            Create a destination with `init_kwargs` and bind the arguments to it.
        '''
        return self.bind(self._clz(**init_kwargs), args)
