"""
Records Models - the primary shareholder dataset
"""
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.db import models

from apps.core.utils import as_integer, parse_number

# Model field -> kind of coercion applied to spreadsheet cells
COERCIONS = {
    's_no': 'integer',
    'account_number': 'integer',
    'name': 'text',
    'address': 'text',
    'units_held': 'decimal',
    'rights_due': 'decimal',
    'amount': 'decimal',
    'mobile_no': 'optional_text',
    'email': 'optional_text',
}

DECIMAL_STEP = Decimal('1e-6')


def _coerce(kind, value):
    if kind == 'integer':
        integer = as_integer(parse_number(value))
        if integer is None:
            raise ValueError('must be a whole number')
        return integer
    if kind == 'decimal':
        number = parse_number(value)
        if number is None:
            raise ValueError('must be a number')
        try:
            return number.quantize(DECIMAL_STEP)
        except InvalidOperation:
            raise ValueError('is out of range')
    if value is None or (isinstance(value, str) and not value.strip()):
        if kind == 'optional_text':
            return None
        raise ValueError('is required')
    return str(value).strip()


class PrescoData(models.Model):
    """
    One shareholder line of the rights issue register.

    Rows come from the sheet uploaded under the default collection name.
    """
    s_no = models.IntegerField(unique=True)
    account_number = models.BigIntegerField(db_index=True)
    name = models.CharField(max_length=255, db_index=True)
    address = models.TextField()
    units_held = models.DecimalField(max_digits=24, decimal_places=6)
    rights_due = models.DecimalField(max_digits=24, decimal_places=6)
    amount = models.DecimalField(max_digits=24, decimal_places=6)
    mobile_no = models.CharField(max_length=64, blank=True, null=True, db_index=True)
    email = models.CharField(max_length=254, blank=True, null=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'prescodatas'
        ordering = ['s_no']
        verbose_name = 'shareholder record'

    def __str__(self):
        return f"{self.account_number} - {self.name}"

    @classmethod
    def from_row(cls, row):
        """
        Build an unsaved record from a parsed sheet row.

        Headers such as "Mobile No." clean to ``mobile_no_``; surrounding
        underscores are ignored when matching them to model fields.
        Raises ValidationError when a required cell is blank or not numeric.
        """
        cells = {str(key).strip('_'): value for key, value in row.items()}
        values, errors = {}, {}
        for field, kind in COERCIONS.items():
            try:
                values[field] = _coerce(kind, cells.get(field))
            except ValueError as exc:
                errors[field] = f"{field} {exc}"
        if errors:
            raise ValidationError(errors)

        record = cls(**values)
        record.clean_fields(exclude=['created_at'])
        return record

    @classmethod
    def as_target(cls):
        from apps.datasets.loader import LoadTarget

        return LoadTarget(
            name=cls._meta.db_table,
            model=cls,
            queryset=cls.objects.all,
            build=cls.from_row,
        )
