from datetime import datetime, timedelta, timezone

import pytest

from ..binder import generate_usage_string, load_properties
from ..errors import InvalidEnumValue, TypeConversionError
from ..types import UUID, FieldKind, Properties, Property
from ..utils import (
    bool_type_fn,
    datetime_type_fn,
    describe_destination,
    format_datetime,
    get_properties,
    int_type_fn,
    number_type_fn,
)
from .models import (
    Account,
    Color,
    Deferred,
    Level,
    SampleEnum,
    SampleRecord,
    Subscription,
    Tagged,
)


def test_get_properties():
    result = get_properties(SampleRecord())
    exp = [
        Property(name='AccountID'),
        Property(name='ParentID'),
        Property(name='CompanyName'),
        Property(name='IsDefault'),
        Property(name='IsDefaultPtr'),
        Property(name='UniqueID'),
        Property(name='UniqueIDPtr'),
        Property(name='StartTime'),
        Property(name='EndTime'),
        Property(name='Enum'),
        Property(name='EnumPtr'),
    ]

    assert result == exp
    assert get_properties(SampleRecord) == result
    assert get_properties(SampleRecord()) == result


def test_get_properties_metadata_and_skipped_fields():
    with pytest.warns(UserWarning, match='tags'):
        result = get_properties(Account)

    assert result.names() == [
        'name', 'email', 'external_key', 'currency', 'bill_cycle_day_local',
        'account_balance', 'is_migrated', 'color', 'mode', 'level'
    ]
    assert result.get('currency') == Property(name='currency', default='USD')
    assert not any(p.required for p in result)


def test_get_properties_plain_class():
    result = get_properties(Subscription())

    assert result.names() == ['plan_name', 'quantity', 'start_date']


def test_describe_destination():
    table = describe_destination(SampleRecord)

    assert describe_destination(SampleRecord) is table
    assert table['AccountID'].kind is FieldKind.String
    assert not table['AccountID'].optional
    assert table['IsDefaultPtr'].kind is FieldKind.Bool
    assert table['IsDefaultPtr'].optional
    assert table['UniqueIDPtr'].kind is FieldKind.UUID
    assert table['EndTime'].kind is FieldKind.DateTime
    assert table['EnumPtr'].kind is FieldKind.Enum
    assert table['EnumPtr'].tag == 'STRING'

    with pytest.raises(TypeError):
        table['AccountID'] = None


def test_bool_type():
    assert bool_type_fn('true') is True
    assert bool_type_fn('TRUE') is True
    assert bool_type_fn('False') is False

    for val in ('1', 'yes', 't', '', ' true'):
        with pytest.raises(TypeConversionError):
            bool_type_fn(val)


def test_int_type():
    assert int_type_fn('42') == 42
    assert int_type_fn('-7') == -7
    assert int_type_fn('+0') == 0

    for val in ('4.2', '0x10', '1_000', ' 1', 'abc', ''):
        with pytest.raises(TypeConversionError):
            int_type_fn(val)


def test_number_type():
    assert number_type_fn('12.5') == 12.5
    assert number_type_fn('-3') == -3.0
    assert number_type_fn('1e3') == 1000.0

    for val in ('nan', 'inf', '1,5', ''):
        with pytest.raises(TypeConversionError):
            number_type_fn(val)


def test_datetime_type():
    dt = datetime_type_fn('2018-01-02T00:00:00Z')
    assert dt - datetime(2018, 1, 2, tzinfo=timezone.utc) == timedelta(0)
    assert dt.tzinfo is not None

    dt = datetime_type_fn('2023-09-10T15:31:59.123456789-05:00')
    assert dt.utcoffset() == timedelta(hours=-5)
    assert dt.microsecond == 123456
    assert dt == datetime(2023, 9, 10, 20, 31, 59, 123456, tzinfo=timezone.utc)

    for val in (
        '2018-01-02', '2018-01-02T00:00:00', '2018-13-02T00:00:00Z',
        '02/01/2018 00:00', '2018-01-02T00:00:00+25:00'
    ):
        with pytest.raises(TypeConversionError):
            datetime_type_fn(val)


def test_format_datetime():
    dt = datetime(2018, 1, 2, tzinfo=timezone.utc)
    assert format_datetime(dt) == '2018-01-02T00:00:00Z'
    assert datetime_type_fn(format_datetime(dt)) == dt

    offset = timezone(timedelta(hours=2))
    assert format_datetime(
        datetime(2018, 1, 2, 3, 4, 5, tzinfo=offset)
    ) == '2018-01-02T03:04:05+02:00'


def test_enum_conversions():
    table = describe_destination(Account)

    assert table['color'].coerce('red') is Color.Red
    assert table['color'].coerce('Blue') is Color.Blue
    assert table['mode'].coerce('slow') == 'slow'
    assert table['level'].coerce('low') == Level('low')

    for name, val in (('color', 'green'), ('mode', 'FAST'), ('level', 'mid')):
        with pytest.raises(InvalidEnumValue) as e:
            table[name].coerce(val)
        assert str(e.value) == f'Invalid value {val} for enum'


def test_validated_enum():
    assert SampleEnum('FOO').is_valid()
    assert not SampleEnum('FOO1').is_valid()

    converted = describe_destination(SampleRecord)['Enum'].coerce('FOO')
    assert type(converted) is SampleEnum
    assert converted == 'FOO'


def test_uuid_kept_verbatim():
    converted = describe_destination(SampleRecord)['UniqueID'].coerce('not-a-uuid')

    assert type(converted) is UUID
    assert converted == 'not-a-uuid'


def test_get_properties_resolves_annotations_one_by_one():
    with pytest.warns(UserWarning, match='UndefinedOwner'):
        result = get_properties(Deferred)

    assert result.names() == ['quantity', 'start_date']
    table = describe_destination(Deferred)
    assert table['quantity'].kind is FieldKind.Integer
    assert table['start_date'].kind is FieldKind.DateTime
    assert table['start_date'].optional
    assert not table['owner'].bindable


def test_type_from_metadata():
    with pytest.warns(UserWarning, match='occupied with meta'):
        result = get_properties(Tagged)

    assert result.names() == ['tags', 'count']
    table = describe_destination(Tagged)
    assert table['tags'].kind is FieldKind.Unknown
    assert generate_usage_string(Tagged, result) == (
        '\n         [tags=VALUE]\n         [count=INTEGER]'
    )

    obj = load_properties(Tagged(), result, ['tags=a,b', 'count=3'])
    assert table['tags'].get(obj) == ['a', 'b']
    assert table['count'].get(obj) == 3

    with pytest.raises(TypeConversionError) as e:
        load_properties(Tagged(), result, ['count=x'])
    assert str(e.value) == 'Invalid value x for property count'


def test_names_fold_without_unicode_expansion():
    props = Properties([Property(name='Straße')])

    assert props.get('STRASSE') is None
    assert props.get('straße') is props[0]
