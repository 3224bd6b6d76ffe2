"""
Tests for JSON unwrapping, validators and period helpers.
"""
import json
from datetime import date

import pytest

from progress_utils import months_between, parse_period, period_key, previous_month, safe_percent
from services import ValidationError
from utils import (
    coerce_number,
    unwrap_json,
    unwrap_json_list,
    validate_code,
    validate_numeric,
)


@pytest.mark.unit
class TestUnwrapJson:
    def test_plain_values_pass_through(self):
        data = {'a': [1, 2]}
        assert unwrap_json(data) is data

    def test_single_and_double_encoding(self):
        data = [{'week': 1}]
        assert unwrap_json(json.dumps(data)) == data
        assert unwrap_json(json.dumps(json.dumps(data))) == data

    def test_depth_is_bounded(self):
        value = [1]
        for _ in range(4):
            value = json.dumps(value)
        assert unwrap_json(value, default='fallback') == 'fallback'
        assert unwrap_json(value, max_depth=4) == [1]

    def test_parse_failure_returns_default(self):
        assert unwrap_json('{oops', default={}) == {}

    def test_typed_helpers(self):
        assert unwrap_json_list('{"a": 1}') == []
        assert unwrap_json_list(b'[1, 2]') == [1, 2]


@pytest.mark.unit
class TestValidators:
    def test_validate_code(self):
        assert validate_code('HVAC', max_length=10) == (True, None)
        is_valid, error = validate_code('X' * 11, max_length=10)
        assert not is_valid
        assert 'cannot exceed 10' in error
        assert validate_code(12)[0] is False

    def test_validate_numeric_rejects_bool_and_nan(self):
        assert validate_numeric(True, 'qty')[0] is False
        assert validate_numeric(float('nan'), 'qty')[0] is False
        assert validate_numeric('2.5', 'qty', min_value=0) == (True, None)

    @pytest.mark.parametrize('value, expected', [
        ('3', 3.0), (' 4.5 ', 4.5), (None, 0.0), ('x', 0.0), (False, 0.0), (float('inf'), 0.0),
    ])
    def test_coerce_number(self, value, expected):
        assert coerce_number(value) == expected


@pytest.mark.unit
class TestPeriods:
    @pytest.mark.parametrize('value, expected', [
        ('2024-03', (2024, 3)),
        ('2024-3', (2024, 3)),
        ('2024-03-31', (2024, 3)),
        (date(2023, 12, 1), (2023, 12)),
        ((2024, 1), (2024, 1)),
    ])
    def test_parse_period(self, value, expected):
        assert parse_period(value) == expected

    def test_parse_period_rejects_bad_month(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_period('2024-00', field='endDate')
        assert exc_info.value.field == 'endDate'

    def test_months_between(self):
        assert months_between((2023, 12), (2024, 2)) == [(2023, 12), (2024, 1), (2024, 2)]
        assert months_between((2024, 2), (2024, 1)) == []

    def test_helpers(self):
        assert period_key(2024, 3) == '2024-03'
        assert previous_month(2024, 1) == (2023, 12)
        assert safe_percent(5, 0) == 0
        assert safe_percent(1, 4) == 25

    @pytest.mark.parametrize('value', [(10000, 1), (0, 5)])
    def test_parse_period_rejects_years_outside_four_digits(self, value):
        with pytest.raises(ValidationError):
            parse_period(value)
