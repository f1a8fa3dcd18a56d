from decimal import Decimal

from number_format import calculate_percentage, color, format_number, format_percentage


def test_format_number_groups_thousands():
    assert format_number(1234567) == "1,234,567"
    assert format_number(999) == "999"
    assert format_number(0) == "0"


def test_format_number_unknown_is_na():
    assert format_number(None) == "N/A"


def test_percentage_truncates_to_two_decimals():
    # 2/3 = 66.666...; rounding would give 66.67
    assert calculate_percentage(2, 3) == Decimal("66.66")
    assert format_percentage(calculate_percentage(450, 500)) == "90.00"
    assert format_percentage(calculate_percentage(451, 500)) == "90.20"


def test_percentage_unknown_inputs():
    assert calculate_percentage(None, 10) is None
    assert calculate_percentage(10, None) is None
    assert calculate_percentage(10, 0) is None
    assert format_percentage(None) == "N/A"


def test_percentage_monotonic_in_local():
    remote = 997
    values = [calculate_percentage(local, remote) for local in range(0, remote + 1)]
    assert values == sorted(values)


def test_color_can_be_disabled():
    assert color("ok", "32", enabled=False) == "ok"
    assert color("ok", "32") == "\033[32mok\033[0m"
