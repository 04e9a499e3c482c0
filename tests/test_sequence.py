"""
Tests for document numbering
"""
import re
from datetime import datetime
import pytest
from services.sequence import (
    ESTIMATION_PREFIX,
    INVOICE_PREFIX,
    format_sequence_number,
    generate_number
)

NUMBER_PATTERN = re.compile(r'^(INV|EST)-\d{4}-\d{6}$')


@pytest.mark.unit
class TestFormat:
    """Tests for number formatting"""

    def test_zero_padded_to_six_digits(self):
        """Test the PREFIX-YEAR-NNNNNN layout"""
        assert format_sequence_number('INV', 2024, 7) == 'INV-2024-000007'

    def test_matches_pattern(self):
        assert NUMBER_PATTERN.match(format_sequence_number('EST', 2025, 123456))


@pytest.mark.integration
class TestGenerateNumber:
    """Tests for the per-year counter"""

    def test_first_number_of_the_year(self, db_session):
        """Test that numbering starts at 1"""
        number = generate_number(db_session, INVOICE_PREFIX, now=datetime(2024, 3, 1))
        assert number == 'INV-2024-000001'

    def test_numbers_increase(self, db_session):
        """Test that successive numbers are strictly increasing"""
        numbers = [generate_number(db_session, INVOICE_PREFIX, now=datetime(2024, 5, 1)) for _ in range(5)]
        suffixes = [int(n.rsplit('-', 1)[1]) for n in numbers]
        assert suffixes == [1, 2, 3, 4, 5]
        assert all(NUMBER_PATTERN.match(n) for n in numbers)

    def test_prefixes_are_independent(self, db_session):
        """Test that INV and EST keep separate counters"""
        generate_number(db_session, INVOICE_PREFIX, now=datetime(2024, 1, 1))
        generate_number(db_session, INVOICE_PREFIX, now=datetime(2024, 1, 1))
        assert generate_number(db_session, ESTIMATION_PREFIX, now=datetime(2024, 1, 1)) == 'EST-2024-000001'

    def test_counter_restarts_each_year(self, db_session):
        """Test that a new year starts again at 1"""
        generate_number(db_session, INVOICE_PREFIX, now=datetime(2024, 12, 31))
        generate_number(db_session, INVOICE_PREFIX, now=datetime(2024, 12, 31))
        assert generate_number(db_session, INVOICE_PREFIX, now=datetime(2025, 1, 1)) == 'INV-2025-000001'

    def test_numbers_survive_document_deletion(self, client, auth_headers, invoice_payload):
        """Test that deleting an invoice does not make its number reusable"""
        first = client.post('/api/invoices', headers=auth_headers, json=invoice_payload).get_json()['data']
        client.delete(f"/api/invoices/{first['id']}", headers=auth_headers)
        second = client.post('/api/invoices', headers=auth_headers, json=invoice_payload).get_json()['data']

        assert first['invoiceNumber'] != second['invoiceNumber']
        assert int(second['invoiceNumber'][-6:]) == int(first['invoiceNumber'][-6:]) + 1
