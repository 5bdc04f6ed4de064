import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from property_binding import (
    UUID,
    PropertyBinder,
    PropertyBindingError,
    ValidatedEnum,
    format_datetime,
)


class AccountCurrency(ValidatedEnum):
    VALUES = frozenset({'USD', 'EUR', 'GBP'})


@dataclass
class Account:
    AccountID: Optional[UUID] = None
    ExternalKey: Optional[str] = None
    Name: Optional[str] = None
    Email: Optional[str] = None
    Currency: Optional[AccountCurrency] = None
    BillCycleDayLocal: int = 0
    TimeZone: Optional[str] = None
    ReferenceTime: Optional[datetime] = None
    IsMigrated: Optional[bool] = None
    Notes: Optional[str] = None


create_account = PropertyBinder(
    Account,
    required=['Name', 'Email'],
    defaults={
        'ReferenceTime': format_datetime(datetime.now()),
        'TimeZone': 'UTC',
        'Currency': 'USD',
    },
)

if __name__ == '__main__':
    if len(sys.argv) < 2:
        print(f'usage: demo.py{create_account.usage}')
        sys.exit(1)

    try:
        account = create_account.parse(sys.argv[1:])
    except PropertyBindingError as e:
        print(e, file=sys.stderr)
        sys.exit(1)

    print(account)
