import pytest

from viandas.schemas import OrderCreate, OrderUpdate
from viandas.utils import strip_html


def test_strip_html_removes_script_tags():
    s = "<script>alert(1)</script>Bob"
    out = strip_html(s)
    assert "<script" not in out.lower()
    assert "bob" in out.lower()


@pytest.mark.parametrize("text", [
    "Ana; Bob",
    "rice -- no beans; x < 3",
    "Tom & Jerry",
    "O'Brien",
    "a > b",
])
def test_strip_html_keeps_plain_text(text):
    assert strip_html(text) == text


def test_strip_html_trims_and_drops_null_bytes():
    assert strip_html("  Tom\x00 & Jerry ") == "Tom & Jerry"
    assert strip_html(None) == ""


def test_order_text_fields_are_sanitized():
    order = OrderCreate(client="<b>Maria</b>", size="small", complement="<i>no onions</i>", price="10")
    assert order.client == "Maria"
    assert order.complement == "no onions"


def test_order_text_stored_as_typed():
    order = OrderCreate(client="Ana; Bob", size="small", complement="rice -- no beans; x < 3", price="10")
    assert order.client == "Ana; Bob"
    assert order.complement == "rice -- no beans; x < 3"


def test_order_update_keeps_explicit_null_complement():
    patch = OrderUpdate(complement=None).model_dump(exclude_unset=True)
    assert patch == {"complement": None}
