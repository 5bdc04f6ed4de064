'''
defined the schema types used to bind `key=value` inputs to a destination record.
'''
from dataclasses import MISSING, dataclass, field
from enum import Enum
from typing import (
    Any,
    Callable,
    ClassVar,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Optional,
    TypeVar,
    Union,
)

DestinationType = TypeVar('DestinationType')


def fold_name(name: str) -> str:
    '''
        Normalize a property name or input key for case-insensitive matching.

        Args:
            - name: `str`, the name to normalize.

        Returns:
            The lowercased name with `-` treated as `_`.
    '''
    return name.lower().replace('-', '_')


class UUID(str):
    '''
        Identifier (UUID-shaped) text. The value is kept verbatim, validating the
        format is up to the consumer.
    '''


class ValidatedEnum(str):
    '''
        A text-backed value with a validity predicate over its own value.

        Subclasses list the accepted literals in `VALUES`:

        ```python
        class Currency(ValidatedEnum):
            VALUES = frozenset({'USD', 'EUR'})
        ```

        Any `str` subclass exposing a callable `is_valid()` is treated the same
        way when binding, deriving from this class is not required.
    '''
    VALUES: ClassVar[FrozenSet[str]] = frozenset()

    def is_valid(self) -> bool:
        return str(self) in self.VALUES


class FieldKind(Enum):
    '''
        Kinds of destination fields recognized by the binder.

        The kind determines which conversion is applied to the raw text value and
        which tag is shown for the field in the usage string:

        - String: text, used verbatim.
        - Bool: `true`/`false`, case-insensitive.
        - Integer: base-10 integer literal.
        - Number: decimal literal.
        - UUID: identifier text, used verbatim.
        - DateTime: RFC 3339 timestamp.
        - Enum: validated enum, `Enum` subclass or `Literal` of text values.
        - Unknown: anything else, not bindable.
    '''
    String = 'string'
    Bool = 'bool'
    Integer = 'integer'
    Number = 'number'
    UUID = 'uuid'
    DateTime = 'datetime'
    Enum = 'enum'
    Unknown = 'unknown'

    @property
    def tag(self) -> str:
        return _USAGE_TAGS[self]


_USAGE_TAGS = {
    FieldKind.String: 'STRING',
    FieldKind.Bool: '{True|False}',
    FieldKind.Integer: 'INTEGER',
    FieldKind.Number: 'NUMBER',
    FieldKind.UUID: 'UUID',
    FieldKind.DateTime: 'DATETIME',
    FieldKind.Enum: 'STRING',
    FieldKind.Unknown: 'VALUE',
}


@dataclass(frozen=True)
class FieldDescriptor:
    '''
        One row of the field table built for a destination type.

        Attributes:
        - name (str):
            The attribute name on the destination.
        - kind (FieldKind):
            The kind of the field, with `Optional[...]` unwrapped.
        - optional (bool):
            Whether the field may be left unset (`None`).
        - convert (Optional[Callable]):
            Converts the raw text into the typed value, raising on failure.
        - annotation (Any):
            The resolved type annotation of the field.
        - metadata (Any):
            The binding metadata attached through `PropertyField`.
    '''
    name: str
    kind: FieldKind
    optional: bool = False
    convert: Optional[Callable[[str], Any]] = None
    annotation: Any = None
    metadata: Any = field(default_factory=dict)

    @property
    def tag(self) -> str:
        return self.kind.tag

    @property
    def bindable(self) -> bool:
        return self.convert is not None

    def coerce(self, text: str) -> Any:
        return self.convert(text)

    def get(self, destination: Any) -> Any:
        return getattr(destination, self.name, None)

    def set(self, destination: Any, value: Any) -> None:
        setattr(destination, self.name, value)


@dataclass
class Property:
    '''
        A schema entry describing one bindable field.

        Attributes:
        - name (str):
            The canonical (case-sensitive) name of the destination field.
        - required (bool, optional):
            Whether binding fails when no input supplies the property.
        - default (Optional[str], optional):
            Text used as the input value when the user supplies none.
    '''
    name: str
    required: bool = False
    default: Optional[str] = None


@dataclass(frozen=True)
class Input:
    '''
        A `key=value` pair supplied by the user. The key may be in any case.
    '''
    key: str
    value: str


class Properties:
    '''
        An ordered collection of `Property` with unique, case-insensitive names.

        Example:
        ```python
        props = get_properties(Account)
        props.get('TimeZone').default = 'UTC'
        props.remove('AccountBalance')
        props.sort(required_first=True, alphabetical=True)
        ```
    '''

    def __init__(self, properties: Iterable[Property] = ()) -> None:
        self._items: List[Property] = []
        for prop in properties:
            self.append(prop)

    def append(self, prop: Property) -> None:
        if self.get(prop.name) is not None:
            raise ValueError(f'Duplicate property {prop.name}')
        self._items.append(prop)

    def get(self, name: str) -> Optional[Property]:
        '''
            Case-insensitive lookup.

            Returns:
                The matching property, or None if there is none.
        '''
        folded = fold_name(name)
        for prop in self._items:
            if fold_name(prop.name) == folded:
                return prop
        return None

    def remove(self, name: str) -> bool:
        '''
            Remove the first property matching `name` case-insensitively.

            Returns:
                True if a property was removed.
        '''
        folded = fold_name(name)
        for index, prop in enumerate(self._items):
            if fold_name(prop.name) == folded:
                del self._items[index]
                return True
        return False

    def sort(self, required_first: bool = True, alphabetical: bool = True) -> None:
        '''
            Reorder the properties in place.

            Parameters:
            - required_first (`bool`): group required properties before the optional ones.
            - alphabetical (`bool`): order by name within each group.

            The sort is stable, properties comparing equal keep their current order.
        '''

        def sort_key(prop: Property):
            key = []
            if required_first:
                key.append(0 if prop.required else 1)
            if alphabetical:
                key.append(prop.name)
            return tuple(key)

        self._items.sort(key=sort_key)

    def names(self) -> List[str]:
        return [prop.name for prop in self._items]

    def copy(self) -> 'Properties':
        return Properties(
            Property(p.name, p.required, p.default) for p in self._items
        )

    def __iter__(self) -> Iterator[Property]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> Property:
        return self._items[index]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Properties):
            return self._items == other._items
        if isinstance(other, (list, tuple)):
            return self._items == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f'Properties({self._items!r})'


def PropertyField(
    default: Optional[Any] = MISSING,
    default_factory: Optional[Callable] = MISSING,
    required: bool = False,
    input_default: Optional[Union[str, Callable[[], str]]] = None,
    exclude: bool = False,
    type: Optional[Callable] = None,
):
    '''
        Create a dataclass field with additional binding information.

        The metadata is applied when the schema is derived from the destination
        type, before any caller-side changes to the schema.

        Parameters:
        - default (`Optional[Any]`, optional):
            Default value of the attribute itself. Defaults to MISSING.
        - default_factory (`Optional[Callable]`, optional):
            Default factory of the attribute. Defaults to MISSING.
        - required (`bool`, optional):
            Mark the derived property as required. Defaults to False.
        - input_default (`Optional[Union[str, Callable[[], str]]]`, optional):
            Text bound when the user supplies no value. A callable is evaluated
            each time the schema is derived.
        - exclude (`bool`, optional):
            Leave the field out of the derived schema. Defaults to False.
        - type (`Optional[Callable]`, optional):
            Conversion function used instead of the one inferred from the annotation.

        Returns:
        - `dataclasses.Field`:
            A dataclass field with the specified metadata.
    '''
    meta_info = {'required': required, 'exclude': exclude}
    if input_default is not None:
        meta_info['input_default'] = input_default
    if type is not None:
        meta_info['type'] = type

    if default is not MISSING:
        return field(default=default, metadata=meta_info)
    elif default_factory is not MISSING:
        return field(default_factory=default_factory, metadata=meta_info)
    else:
        return field(metadata=meta_info)
