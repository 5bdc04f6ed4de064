'''
errors raised while deriving schemas and binding inputs.
'''


class PropertyBindingError(Exception):
    '''
        Base class of the binding errors. The message is meant to be shown to the
        user as is.
    '''


class MissingRequiredProperty(PropertyBindingError):

    def __init__(self, name: str) -> None:
        super(MissingRequiredProperty, self).__init__(
            f'Missing required property {name}'
        )
        self.name = name


class TypeConversionError(PropertyBindingError, ValueError):
    '''
        The raw text can't be converted to the kind of the destination field.
    '''

    def __init__(self, value: str, expected: str) -> None:
        super(TypeConversionError, self).__init__(
            f'Invalid value {value} for {expected}'
        )
        self.value = value
        self.expected = expected


class InvalidEnumValue(TypeConversionError):

    def __init__(self, value: str) -> None:
        super(InvalidEnumValue, self).__init__(value, 'enum')


class UnknownPropertyError(PropertyBindingError, KeyError):

    def __init__(self, name: str, message: str = None) -> None:
        super(UnknownPropertyError, self).__init__(
            message or f'Unknown property {name}'
        )
        self.name = name

    def __str__(self) -> str:
        # KeyError would quote the message
        return str(self.args[0])


class MalformedInputError(PropertyBindingError, ValueError):

    def __init__(self, token: str) -> None:
        super(MalformedInputError, self).__init__(
            f'Invalid argument {token}. Expecting key=value'
        )
        self.token = token
