import pytest
from xtop.resources.quantity import Quantity, UnitFamily, parse_quantity

DEC = UnitFamily.DECIMAL
BIN = UnitFamily.BINARY


@pytest.mark.parametrize("raw,expected", [
    ('250m', '250m'),
    ('2', '2'),
    ('1.5', '1500m'),
    ('2000m', '2'),
    ('2000', '2k'),
    ('0.1', '100m'),
    ('1e3', '1k'),
    ('100u', '100u'),
    ('1234567n', '1234567n'),
    ('1E', '1E'),
])
def test_decimal_canonical_form(raw, expected):
    assert str(parse_quantity(raw, DEC)) == expected


@pytest.mark.parametrize("raw,expected", [
    ('512Mi', '512Mi'),
    ('4Gi', '4Gi'),
    ('1.5Gi', '1536Mi'),
    ('1024', '1Ki'),
    ('1000', '1000'),
    ('128974848', '123Mi'),
    ('1G', '1000000000'),
    ('129e6', '129000000'),
    ('16393252Ki', '16393252Ki'),
])
def test_binary_canonical_form(raw, expected):
    assert str(parse_quantity(raw, BIN)) == expected


def test_binary_family_never_uses_decimal_suffix():
    for raw in ['1', '999', '1k', '1M', '3G', '100m', '1.5Gi', '1e9', '7Ti', '12345678']:
        _, suffix = parse_quantity(raw, BIN).canonicalize()
        assert suffix in ('', 'Ki', 'Mi', 'Gi', 'Ti', 'Pi', 'Ei'), raw


def test_fractional_bytes_round_up():
    assert str(parse_quantity('100m', BIN)) == '1'


def test_zero_canonicalizes_to_plain_zero():
    assert Quantity.zero(DEC).canonicalize() == ('0', '')
    assert Quantity.zero(BIN).canonicalize() == ('0', '')
    assert Quantity.zero(DEC).is_zero()


def test_add_in_place():
    q = Quantity.zero(DEC)
    assert q.add(parse_quantity('250m', DEC)) is None
    q.add(parse_quantity('1.75', DEC))
    assert str(q) == '2'
    assert q.milli_value() == 2000


def test_add_is_commutative():
    a = parse_quantity('300m', DEC)
    a.add(parse_quantity('2', DEC))
    b = parse_quantity('2', DEC)
    b.add(parse_quantity('300m', DEC))
    assert a == b
    assert a.compare(b) == 0


def test_add_across_families_is_rejected():
    q = Quantity.zero(DEC)
    with pytest.raises(ValueError):
        q.add(parse_quantity('1Gi', BIN))
    with pytest.raises(ValueError):
        q.compare(Quantity.zero(BIN))


def test_compare_orders_by_magnitude():
    small = parse_quantity('500m', DEC)
    big = parse_quantity('1', DEC)
    assert small.compare(big) == -1
    assert big.compare(small) == 1
    assert parse_quantity('1000m', DEC).compare(big) == 0
    assert small < big
    assert sorted([big, small]) == [small, big]


def test_scaled_values_round_up():
    assert parse_quantity('1n', DEC).milli_value() == 1
    assert parse_quantity('1500m', DEC).value() == 2
    assert parse_quantity('250m', DEC).scaled_value() == 250
    assert parse_quantity('1Ki', BIN).scaled_value() == 1024


def test_copy_is_independent():
    q = parse_quantity('1', DEC)
    c = q.copy()
    c.add(parse_quantity('1', DEC))
    assert str(q) == '1'
    assert str(c) == '2'


@pytest.mark.parametrize("raw", ['', 'abc', '1.2.3', '5Xi', 'm', '1e', None, True, '-1', '-250m', '1e60', '1e99999999', '2000000000000000000Ei'])
def test_parse_rejects_malformed(raw):
    with pytest.raises(ValueError):
        parse_quantity(raw, DEC)


def test_parse_accepts_numbers():
    assert str(parse_quantity(2, DEC)) == '2'
    assert str(parse_quantity(' 64Mi ', BIN)) == '64Mi'


def test_largest_accepted_amount_still_adds_exactly():
    big = parse_quantity('1e36', DEC)
    big.add(parse_quantity('1n', DEC))
    assert big.compare(parse_quantity('1e36', DEC)) == 1
    assert str(parse_quantity('-0', DEC)) == '0'
