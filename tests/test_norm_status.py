import pytest

from common.norm.status import OrderStatus, is_completed, normalize_status


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("concluído", OrderStatus.COMPLETED),
        ("Concluido", OrderStatus.COMPLETED),
        ("  CONCLUÍDO ", OrderStatus.COMPLETED),
        ("completed", OrderStatus.COMPLETED),
        ("aguardando", OrderStatus.AWAITING),
        ("Separando", OrderStatus.PICKING),
        ("enviado", OrderStatus.SHIPPED),
        ("cancelado", OrderStatus.OTHER),
        ("", OrderStatus.OTHER),
        (None, OrderStatus.OTHER),
    ],
)
def test_normalize_status(raw, expected):
    assert normalize_status(raw) is expected


def test_is_completed():
    assert is_completed("Concluído")
    assert not is_completed("enviado")
    assert not is_completed(None)
