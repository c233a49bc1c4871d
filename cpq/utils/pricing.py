"""
Quote / order arithmetic.

Line amounts are rounded to whole rupees with halves going up, the way
the quote sheet has always shown them.
"""
import math

PRICED_FIELDS = ("qty", "price", "tax", "discount")

ADDITIONAL_COSTS = (
    "liquidated_damages",
    "freight_charge",
    "transit_insurance",
    "installation",
    "security_deposit",
    "liaisoning",
)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def line_amount(qty, price, discount_pct=0, tax_pct=0) -> int:
    """round(qty * price * (1 - discount/100) * (1 + tax/100))"""
    qty = float(qty or 0)
    price = float(price or 0)
    discount_pct = float(discount_pct or 0)
    tax_pct = float(tax_pct or 0)

    subtotal = qty * price - (qty * price * discount_pct) / 100
    total = subtotal + (subtotal * tax_pct) / 100
    return round_half_up(total)


def quote_total(items) -> float:
    total = 0
    for item in items:
        amount = item["amount"] if isinstance(item, dict) else item.amount
        total += amount or 0
    return total


def price_with_gst(price_per_piece, gst) -> float:
    price_per_piece = float(price_per_piece)
    return price_per_piece + (float(gst) / 100) * price_per_piece


def order_item_breakdown(quantity, unit_price, tax_rate=0, discount_rate=0) -> dict:
    subtotal = round(float(quantity) * float(unit_price), 2)
    discount_amount = round(subtotal * float(discount_rate or 0) / 100, 2)
    taxable = subtotal - discount_amount
    tax_amount = round(taxable * float(tax_rate or 0) / 100, 2)

    return {
        "subtotal": subtotal,
        "discount_amount": discount_amount,
        "tax_amount": tax_amount,
        "total_amount": round(taxable + tax_amount, 2),
    }


def order_totals(breakdowns) -> dict:
    totals = {
        "subtotal": 0,
        "discount_amount": 0,
        "tax_amount": 0,
        "total_amount": 0,
    }
    for b in breakdowns:
        for field in totals:
            totals[field] += b[field]
    return {field: round(value, 2) for field, value in totals.items()}


def additional_cost_total(costs: dict) -> float:
    """
    costs: {"freight_charge_inclusive": True, "freight_charge_amount": 500, ...}
    Inclusive costs are already in the item prices and are not added.
    """
    total = 0
    for name in ADDITIONAL_COSTS:
        if costs.get(f"{name}_inclusive"):
            continue
        total += float(costs.get(f"{name}_amount") or 0)
    return round(total, 2)


def grand_total(total_amount, costs: dict) -> float:
    return round(float(total_amount or 0) + additional_cost_total(costs), 2)


# ------------------------
# EDITABLE LINE ITEMS
# ------------------------

def _blank_row(row_id):
    return {
        "id": row_id,
        "item": "",
        "qty": 0,
        "unit": "",
        "price": 0,
        "tax": 0,
        "discount": 0,
        "amount": 0,
        "item_category": "",
        "item_code": "",
        "description": "",
        "serial_no": "",
        "batch_no": "",
        "exp_date": "",
        "mfg_date": "",
        "model_no": "",
        "size": "",
    }


class LineItemSheet:
    """The quote line-item grid, edited one cell at a time."""

    def __init__(self, rows=None):
        self.rows = []
        self.next_id = 1
        for row in rows or []:
            self.add_row(**row)
        if not self.rows:
            self.add_row()

    def add_row(self, **values):
        row = _blank_row(self.next_id)
        row.update({k: v for k, v in values.items() if k != "id"})
        if "amount" not in values:
            row["amount"] = self._amount(row)
        self.rows.append(row)
        self.next_id += 1
        return row

    def row(self, row_id):
        for row in self.rows:
            if row["id"] == row_id:
                return row
        raise KeyError(row_id)

    def delete_row(self, row_id):
        self.rows.remove(self.row(row_id))

    def update_cell(self, row_id, field, value) -> bool:
        """
        Returns False when the edit is rejected (negative qty / price /
        tax / discount). Only the edited row is recomputed.
        """
        row = self.row(row_id)
        if field in PRICED_FIELDS and float(value or 0) < 0:
            return False

        row[field] = value
        if field in PRICED_FIELDS:
            row["amount"] = self._amount(row)
        return True

    def apply_product(self, row_id, product):
        row = self.row(row_id)
        row["item"] = product.product_name
        row["unit"] = product.unit_of_measurement
        row["price"] = product.price_per_piece
        row["tax"] = product.gst
        row["description"] = product.notes or ""
        row["amount"] = self._amount(row)
        return row

    @staticmethod
    def _amount(row):
        return line_amount(row["qty"], row["price"], row["discount"], row["tax"])

    @property
    def total(self):
        return quote_total(self.rows)

    def to_items(self) -> list[dict]:
        return [
            {
                "product_name": row["item"],
                "quantity": int(float(row["qty"] or 0)),
                "unit_price": float(row["price"] or 0),
                "tax": float(row["tax"] or 0),
                "discount": float(row["discount"] or 0),
                "amount": row["amount"],
                "unit": row["unit"] or None,
                "item_category": row["item_category"] or None,
                "item_code": row["item_code"] or None,
                "description": row["description"] or None,
                "serial_no": row["serial_no"] or None,
                "batch_no": row["batch_no"] or None,
                "exp_date": row["exp_date"] or None,
                "mfg_date": row["mfg_date"] or None,
                "model_no": row["model_no"] or None,
                "size": row["size"] or None,
            }
            for row in self.rows
        ]
