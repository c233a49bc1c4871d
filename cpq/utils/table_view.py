"""
Generic filterable / sortable / paginated table view.

One engine shared by the customers, quotes, users and quote line-item
tables (plus products and orders). It works on an in-memory list of
records fetched once, and keeps the UI state of a table:

- global filter: free text, or structured ``col1:v1,v2;col2:v3``
- filters panel: per-column allow-lists and numeric ranges
- single-column sort toggle (unsorted -> asc -> desc -> unsorted)
- fixed-size pagination
- selection set for bulk actions
"""
import enum
import math
from datetime import date, datetime

SORT_ASC = "asc"
SORT_DESC = "desc"

PAGE_SIZE_OPTIONS = (10, 25, 50, 100)
DEFAULT_PAGE_SIZE = 10


# ------------------------
# VALUE HELPERS
# ------------------------

def resolve(record, accessor):
    """
    Read a value from a dict or an ORM object.
    Supports dotted paths ("customer.name") and callables.
    """
    if callable(accessor):
        return accessor(record)

    value = record
    for part in accessor.split("."):
        if value is None:
            return None
        if isinstance(value, dict):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


def display_value(value) -> str:
    """String used for searching and structured matching."""
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ", ".join(display_value(v) for v in value)
    return str(value)


def format_currency(value) -> str:
    if value is None:
        return ""
    return f"₹{float(value):,.2f}"


def format_timestamp(value) -> str:
    """HH:MM , DD/MM/YY"""
    if value is None:
        return ""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return value.strftime("%H:%M , %d/%m/%y")


def format_date(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        value = date.fromisoformat(value)
    return value.strftime("%d-%m-%Y")


def _sort_key(value):
    if isinstance(value, enum.Enum):
        value = value.value
    if value is None:
        return (2, 0)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value)
    if isinstance(value, (date, datetime)):
        return (0, value.toordinal() if not isinstance(value, datetime) else value.timestamp())
    return (1, display_value(value).lower())


# ------------------------
# COLUMNS
# ------------------------

class Column:
    def __init__(
        self,
        id,
        header=None,
        accessor=None,
        formatter=None,
        searchable=True,
        sortable=True
    ):
        self.id = id
        self.header = header or id
        self.accessor = accessor or id
        self.formatter = formatter or display_value
        self.searchable = searchable
        self.sortable = sortable

    def value(self, record):
        return resolve(record, self.accessor)

    def render(self, record) -> str:
        return self.formatter(self.value(record))

    def __repr__(self):
        return f"Column({self.id!r})"


# ------------------------
# FILTER ENGINE
# ------------------------

def parse_structured_filter(value: str) -> list[tuple[str, list[str]]]:
    """
    "status:Approved,Pending;createdBy:Asha" ->
    [("status", ["Approved", "Pending"]), ("createdBy", ["Asha"])]
    """
    pairs = []
    for segment in value.split(";"):
        if not segment.strip():
            continue
        column_id, _, raw_values = segment.partition(":")
        values = [v.strip() for v in raw_values.split(",") if v.strip()]
        pairs.append((column_id.strip(), values))
    return pairs


def global_filter(records, columns, value):
    if not value:
        return list(records)

    columns_by_id = {c.id: c for c in columns}

    if ":" not in value:
        needle = value.lower()
        searchable = [c for c in columns if c.searchable]
        return [
            record for record in records
            if any(needle in display_value(c.value(record)).lower() for c in searchable)
        ]

    pairs = parse_structured_filter(value)

    def matches(record):
        for column_id, allowed in pairs:
            # Empty column or empty value list is a no-op
            if not column_id or not allowed:
                continue
            column = columns_by_id.get(column_id)
            row_value = column.value(record) if column else resolve(record, column_id)
            if display_value(row_value) not in allowed:
                return False
        return True

    return [record for record in records if matches(record)]


def _allowed(row_value, allowed):
    if isinstance(row_value, (list, tuple, set)):
        return any(display_value(v) in allowed for v in row_value)
    return display_value(row_value) in allowed


def _in_range(row_value, low, high):
    if row_value is None:
        return False
    number = float(row_value)
    if low is not None and number < low:
        return False
    if high is not None and number > high:
        return False
    return True


# ------------------------
# TABLE VIEW
# ------------------------

class TableView:
    def __init__(self, columns, records=None, page_size=DEFAULT_PAGE_SIZE, key="id"):
        if page_size < 1:
            raise ValueError("page_size must be positive")

        self.columns = list(columns)
        self.key = key
        self.page_size = page_size
        self.page_index = 0

        self.global_filter = None
        self.column_filters = {}   # column id -> set of allowed display values
        self.range_filters = {}    # column id -> (low, high)

        self.sort_by = None
        self.sort_direction = None

        self.selected = set()
        self.records = []
        self.load(records or [])

    # -- data source --

    def load(self, records):
        self.records = list(records)
        self.selected.clear()
        self.page_index = 0

    def column(self, column_id) -> Column:
        for column in self.columns:
            if column.id == column_id:
                return column
        raise ValueError(f"Unknown column: {column_id}")

    def record_key(self, record):
        return resolve(record, self.key)

    # -- filters --

    def set_global_filter(self, value):
        self.global_filter = value or None
        self._filters_changed()

    def set_column_filter(self, column_id, values):
        self.column(column_id)
        allowed = {display_value(v) for v in (values or [])}
        if allowed:
            self.column_filters[column_id] = allowed
        else:
            self.column_filters.pop(column_id, None)
        self._filters_changed()

    def set_range_filter(self, column_id, low=None, high=None):
        self.column(column_id)
        if low is None and high is None:
            self.range_filters.pop(column_id, None)
        else:
            self.range_filters[column_id] = (low, high)
        self._filters_changed()

    def clear_filters(self):
        self.global_filter = None
        self.column_filters.clear()
        self.range_filters.clear()
        self._filters_changed()

    def _filters_changed(self):
        self.page_index = 0
        # Rows hidden by the new filter leave the selection
        visible = {self.record_key(r) for r in self.filtered_rows}
        self.selected &= visible

    @property
    def filtered_rows(self):
        rows = self.records

        for column_id, allowed in self.column_filters.items():
            column = self.column(column_id)
            rows = [r for r in rows if _allowed(column.value(r), allowed)]

        for column_id, (low, high) in self.range_filters.items():
            column = self.column(column_id)
            rows = [r for r in rows if _in_range(column.value(r), low, high)]

        return global_filter(rows, self.columns, self.global_filter)

    # -- sorting --

    def toggle_sort(self, column_id):
        column = self.column(column_id)
        if not column.sortable:
            raise ValueError(f"Column is not sortable: {column_id}")

        if self.sort_by != column_id:
            self.sort_by, self.sort_direction = column_id, SORT_ASC
        elif self.sort_direction == SORT_ASC:
            self.sort_direction = SORT_DESC
        else:
            self.sort_by, self.sort_direction = None, None

    def set_sort(self, column_id, direction=SORT_ASC):
        if column_id is None or direction is None:
            self.sort_by, self.sort_direction = None, None
            return
        if direction not in (SORT_ASC, SORT_DESC):
            raise ValueError(f"Unknown sort direction: {direction}")
        column = self.column(column_id)
        if not column.sortable:
            raise ValueError(f"Column is not sortable: {column_id}")
        self.sort_by, self.sort_direction = column_id, direction

    @property
    def rows(self):
        """Filtered and sorted rows, all pages."""
        rows = self.filtered_rows
        if self.sort_by is None:
            return rows

        column = self.column(self.sort_by)
        # sorted() is stable, also with reverse=True
        return sorted(
            rows,
            key=lambda r: _sort_key(column.value(r)),
            reverse=self.sort_direction == SORT_DESC
        )

    # -- pagination --

    @property
    def page_count(self):
        return max(1, math.ceil(len(self.filtered_rows) / self.page_size))

    @property
    def page(self):
        self.page_index = min(self.page_index, self.page_count - 1)
        start = self.page_index * self.page_size
        return self.rows[start:start + self.page_size]

    @property
    def can_previous_page(self):
        return self.page_index > 0

    @property
    def can_next_page(self):
        return self.page_index < self.page_count - 1

    def goto_page(self, index):
        self.page_index = min(max(index, 0), self.page_count - 1)

    def first_page(self):
        self.goto_page(0)

    def previous_page(self):
        self.goto_page(self.page_index - 1)

    def next_page(self):
        self.goto_page(self.page_index + 1)

    def last_page(self):
        self.goto_page(self.page_count - 1)

    def set_page_size(self, size):
        if size < 1:
            raise ValueError("page_size must be positive")
        top_row = self.page_index * self.page_size
        self.page_size = size
        self.goto_page(top_row // size)

    # -- selection --

    def select(self, key):
        self.selected.add(key)

    def deselect(self, key):
        self.selected.discard(key)

    def toggle_selected(self, key):
        if key in self.selected:
            self.selected.discard(key)
        else:
            self.selected.add(key)

    def toggle_all_selected(self):
        visible = {self.record_key(r) for r in self.filtered_rows}
        if visible and visible <= self.selected:
            self.selected -= visible
        else:
            self.selected |= visible

    def clear_selection(self):
        self.selected.clear()

    @property
    def selected_keys(self):
        return [self.record_key(r) for r in self.selected_records]

    @property
    def selected_records(self):
        """Selected rows that are visible under the active filters."""
        return [r for r in self.rows if self.record_key(r) in self.selected]

    # -- rendering --

    def render_row(self, record) -> dict:
        return {column.id: column.render(record) for column in self.columns}

    def render_page(self) -> list[dict]:
        return [self.render_row(r) for r in self.page]

    def snapshot(self, serialize=None) -> dict:
        serialize = serialize or self.render_row
        page = self.page
        return {
            "rows": [serialize(r) for r in page],
            "page_index": self.page_index,
            "page_size": self.page_size,
            "page_count": self.page_count,
            "total_rows": len(self.records),
            "filtered_rows": len(self.filtered_rows),
            "can_previous_page": self.can_previous_page,
            "can_next_page": self.can_next_page,
            "sort": {"column": self.sort_by, "direction": self.sort_direction},
        }


# ------------------------
# COLUMN SETS
# ------------------------

CUSTOMER_COLUMNS = [
    Column("name", "Name"),
    Column("email", "Email"),
    Column("phone", "Phone"),
    Column("industry", "Industry"),
    Column("type_of_customer", "Type of Customer"),
    Column("sales_rep", "Sales Rep"),
    Column("billing_city", "City"),
    Column("billing_state", "State"),
    Column("billing_country", "Country"),
]

QUOTE_COLUMNS = [
    Column("ref_no", "Reference No"),
    Column("customer.name", "Customer Name"),
    Column("status", "Status"),
    Column("created_by", "Created By"),
    Column("total_amount", "Total Amount", formatter=format_currency),
    Column(
        "product_names",
        "Product Names",
        accessor=lambda q: [item.product_name for item in q.items],
        sortable=False
    ),
    Column("updated_at", "Last Updated At", formatter=format_timestamp),
]

USER_COLUMNS = [
    Column("first_name", "First Name"),
    Column("last_name", "Last Name"),
    Column("email", "Email"),
    Column("designation", "Designation"),
    Column("team_name", "Team"),
    Column("approval_by_admin", "Approved"),
    Column("role", "Role"),
]

QUOTE_ITEM_COLUMNS = [
    Column("product_name", "Item"),
    Column("quantity", "Qty"),
    Column("unit", "Unit"),
    Column("unit_price", "Price", formatter=format_currency),
    Column("discount", "Discount %"),
    Column("tax", "Tax %"),
    Column("amount", "Amount", formatter=format_currency),
]

PRODUCT_COLUMNS = [
    Column("product_name", "Product Name"),
    Column("sku_id", "SKU"),
    Column("brand", "Brand"),
    Column("category", "Category"),
    Column("price_per_piece", "Price", formatter=format_currency),
    Column("gst", "GST %"),
    Column("price_with_gst", "Price with GST", formatter=format_currency),
    Column("stock_quantity", "Stock"),
]

ORDER_COLUMNS = [
    Column("order_number", "Order Number"),
    Column("customer_name", "Customer Name"),
    Column("status", "Status"),
    Column("executive_name", "Executive"),
    Column("grand_total", "Grand Total", formatter=format_currency),
    Column("order_date", "Order Date", formatter=format_date),
]

LICENSE_COLUMNS = [
    Column("license_number", "License Number"),
    Column("license_type", "License Type"),
    Column("customer.name", "Customer Name"),
    Column("status", "Status"),
    Column("issuing_authority", "Issuing Authority"),
    Column("issuing_date", "Issuing Date", formatter=format_date),
    Column("expiry_date", "Expiry Date", formatter=format_date),
]
