"""
Unit tests for invoice number formatting and parsing.
"""

from stockorders.services.invoice_sequence_service import format_invoice_number, parse_invoice_number


class TestFormatInvoiceNumber:

    def test_zero_padded(self):
        assert format_invoice_number(1) == 'INV-00001'
        assert format_invoice_number(42) == 'INV-00042'

    def test_grows_past_five_digits(self):
        assert format_invoice_number(99999) == 'INV-99999'
        assert format_invoice_number(100000) == 'INV-100000'


class TestParseInvoiceNumber:

    def test_parses_numeric_part(self):
        assert parse_invoice_number('INV-00099') == 99
        assert parse_invoice_number('INV-100000') == 100000

    def test_malformed_values_are_ignored(self):
        assert parse_invoice_number(None) is None
        assert parse_invoice_number('') is None
        assert parse_invoice_number('INV-') is None
        assert parse_invoice_number('INV-12A') is None
        assert parse_invoice_number('FAC-00001') is None

    def test_numeric_ordering(self):
        """INV-00100 is after INV-00099 and INV-100000 is after INV-99999."""
        values = ['INV-00099', 'INV-100000', 'INV-00100', 'INV-99999', 'bogus']
        numbers = [n for n in map(parse_invoice_number, values) if n is not None]
        assert max(numbers) == 100000
        assert sorted(numbers) == [99, 100, 99999, 100000]
