import pytest

from fluctus.domain.policies import (
    arredonda_para_cima,
    format_brl,
    margin_below_target,
    safe_val,
    same_id,
)


@pytest.mark.parametrize(
    "val, expected",
    [(None, 0.0), ("", 0.0), ("abc", 0.0), ("3.5", 3.5), (2, 2.0), (True, 0.0),
     (float("nan"), 0.0), (float("inf"), 0.0)],
)
def test_safe_val(val, expected):
    assert safe_val(val) == expected


@pytest.mark.parametrize(
    "valor, expected",
    [(13.0, 13.0), (0.333, 0.34), (0.0001, 0.01), (0.3, 0.3), (2.001, 2.01), (0, 0.0), (-1.234, -1.23)],
)
def test_arredonda_para_cima(valor, expected):
    assert arredonda_para_cima(valor) == expected


def test_arredonda_para_cima_outras_casas():
    assert arredonda_para_cima(1.2301, casas=3) == 1.231


@pytest.mark.parametrize(
    "val, expected",
    [(1234.56, "R$ 1.234,56"), (0, "R$ 0,00"), (69.9, "R$ 69,90"), (-5, "-R$ 5,00"),
     (1234567.891, "R$ 1.234.567,89"), (None, "R$ 0,00")],
)
def test_format_brl(val, expected):
    assert format_brl(val) == expected


def test_margin_below_target():
    assert margin_below_target(25, 30) is True
    assert margin_below_target(30, 30) is False
    assert margin_below_target(None, 0) is False


def test_same_id_text_form():
    assert same_id(1, "1")
    assert same_id(1.0, 1)
    assert same_id(" 7", 7)
    assert not same_id(1, 2)
    assert not same_id(None, None)
