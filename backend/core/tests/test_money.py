import pytest

from core.exceptions import InvalidArgument
from core.money import format_inr, paise_to_rupees, rupees_to_paise, to_paise


class TestToPaise:
    def test_accepts_non_negative_ints(self):
        assert to_paise(0) == 0
        assert to_paise(10050) == 10050

    @pytest.mark.parametrize('value', [1.5, '100', None, True])
    def test_rejects_non_integers(self, value):
        with pytest.raises(InvalidArgument):
            to_paise(value)

    def test_negative_only_when_signed(self):
        with pytest.raises(InvalidArgument):
            to_paise(-1)
        assert to_paise(-1, signed=True) == -1


class TestRupeesToPaise:
    @pytest.mark.parametrize('text, expected', [
        ('100.50', 10050),
        ('100', 10000),
        (' 0.01 ', 1),
        ('0.005', 1),
        ('0.004', 0),
        ('12.345', 1235),
    ])
    def test_parses_and_rounds_half_up(self, text, expected):
        assert rupees_to_paise(text) == expected

    @pytest.mark.parametrize('text', ['', '   ', None, 'abc', '1.2.3', 'NaN', 'Infinity', '-5'])
    def test_rejects_bad_input(self, text):
        with pytest.raises(InvalidArgument):
            rupees_to_paise(text)


def test_paise_to_rupees():
    assert paise_to_rupees(10050) == '100.50'
    assert paise_to_rupees(5) == '0.05'
    assert paise_to_rupees(0) == '0.00'
    assert paise_to_rupees(-250) == '-2.50'


def test_paise_to_rupees_parses_back():
    for paise in (0, 1, 99, 100, 123456789):
        assert rupees_to_paise(paise_to_rupees(paise)) == paise


@pytest.mark.parametrize('paise, expected', [
    (0, '₹0.00'),
    (99900, '₹999.00'),
    (100000, '₹1,000.00'),
    (10000050, '₹1,00,000.50'),
    (1234567890, '₹1,23,45,678.90'),
    (-150000, '-₹1,500.00'),
])
def test_format_inr_uses_indian_grouping(paise, expected):
    assert format_inr(paise) == expected
