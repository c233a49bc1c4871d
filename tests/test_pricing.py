from types import SimpleNamespace

import pytest

from cpq.utils.pricing import (
    LineItemSheet,
    additional_cost_total,
    grand_total,
    line_amount,
    order_item_breakdown,
    order_totals,
    price_with_gst,
    quote_total,
)


def test_line_amount():
    assert line_amount(1, 100, 0, 0) == 100
    assert line_amount(2, 100, 10, 18) == 212
    assert line_amount(0, 999, 5, 18) == 0


def test_line_amount_rounds_halves_up():
    # 1 * 0.5 -> 0.5 -> 1
    assert line_amount(1, 0.5) == 1
    assert line_amount(1, 2.5) == 3
    assert line_amount(1, 2.49) == 2


def test_line_amount_treats_blanks_as_zero():
    assert line_amount("", None, "", "") == 0
    assert line_amount("3", "10") == 30


def test_quote_total_accepts_dicts_and_objects():
    assert quote_total([{"amount": 100}, {"amount": 212}]) == 312
    assert quote_total([SimpleNamespace(amount=50), SimpleNamespace(amount=None)]) == 50
    assert quote_total([]) == 0


def test_price_with_gst():
    assert price_with_gst(100, 18) == pytest.approx(118)
    assert price_with_gst(250, 0) == 250


def test_order_item_breakdown_applies_discount_before_tax():
    assert order_item_breakdown(2, 100, tax_rate=18, discount_rate=10) == {
        "subtotal": 200,
        "discount_amount": 20,
        "tax_amount": 32.4,
        "total_amount": 212.4,
    }


def test_order_totals_sums_breakdowns():
    totals = order_totals([
        order_item_breakdown(2, 100, 18, 10),
        order_item_breakdown(1, 50, 0, 0),
    ])
    assert totals == {
        "subtotal": 250,
        "discount_amount": 20,
        "tax_amount": 32.4,
        "total_amount": 262.4,
    }


def test_inclusive_costs_are_not_added():
    costs = {
        "freight_charge_inclusive": False,
        "freight_charge_amount": 500,
        "installation_inclusive": True,
        "installation_amount": 1000,
        "transit_insurance_amount": 120.5,
    }
    assert additional_cost_total(costs) == 620.5
    assert grand_total(1000, costs) == 1620.5
    assert grand_total(None, {}) == 0


# --- line item sheet ---

def test_new_sheet_has_one_blank_row():
    sheet = LineItemSheet()
    assert len(sheet.rows) == 1
    assert sheet.rows[0]["amount"] == 0
    assert sheet.total == 0


def test_editing_priced_cell_recomputes_only_that_row():
    sheet = LineItemSheet([
        {"item": "Router", "qty": 1, "price": 100},
        {"item": "Cable", "qty": 2, "price": 10, "amount": 999},
    ])
    first, second = sheet.rows

    assert sheet.update_cell(first["id"], "qty", 2)
    assert sheet.update_cell(first["id"], "discount", 10)
    assert sheet.update_cell(first["id"], "tax", 18)

    assert first["amount"] == 212
    assert second["amount"] == 999
    assert sheet.total == 212 + 999


def test_negative_values_are_rejected():
    sheet = LineItemSheet([{"item": "Router", "qty": 1, "price": 100}])
    row = sheet.rows[0]

    for field in ("qty", "price", "tax", "discount"):
        assert sheet.update_cell(row["id"], field, -1) is False

    assert row["qty"] == 1
    assert row["amount"] == 100


def test_non_priced_cell_keeps_amount():
    sheet = LineItemSheet([{"item": "Router", "qty": 1, "price": 100}])
    row = sheet.rows[0]
    assert sheet.update_cell(row["id"], "description", "Dual band")
    assert row["amount"] == 100


def test_rows_have_unique_ids_after_delete():
    sheet = LineItemSheet()
    second = sheet.add_row(item="Switch")
    sheet.delete_row(sheet.rows[0]["id"])
    third = sheet.add_row(item="Patch panel")
    assert second["id"] != third["id"]
    with pytest.raises(KeyError):
        sheet.row(1)


def test_apply_product_fills_price_and_tax():
    sheet = LineItemSheet([{"qty": 3}])
    product = SimpleNamespace(
        product_name="Access Point",
        unit_of_measurement="pcs",
        price_per_piece=1000,
        gst=18,
        notes=None,
    )
    row = sheet.apply_product(sheet.rows[0]["id"], product)
    assert row["item"] == "Access Point"
    assert row["amount"] == 3540


def test_to_items_maps_to_quote_item_fields():
    sheet = LineItemSheet([{"item": "Router", "qty": "2", "price": "100", "tax": 18}])
    [item] = sheet.to_items()
    assert item["product_name"] == "Router"
    assert item["quantity"] == 2
    assert item["unit_price"] == 100.0
    assert item["amount"] == 236
    assert item["exp_date"] is None
