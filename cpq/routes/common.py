from fastapi import HTTPException, Query
from sqlalchemy import inspect

from cpq.utils.table_view import TableView, DEFAULT_PAGE_SIZE


def row_to_dict(obj, exclude=()):
    """Column attributes of an ORM object as a plain dict."""
    return {
        attr.key: getattr(obj, attr.key)
        for attr in inspect(obj).mapper.column_attrs
        if attr.key not in exclude
    }


def apply_changes(obj, changes: dict, skip=()):
    """setattr each change onto an ORM object. None never clears a NOT NULL column."""
    columns = inspect(obj).mapper.columns
    for field, value in changes.items():
        if field in skip:
            continue
        if value is None and field in columns and not columns[field].nullable:
            continue
        setattr(obj, field, value)
    return obj


def distinct_options(values):
    """[{"label": v, "value": v}] for react-select style dropdowns."""
    unique = sorted({v for v in values if v})
    return [{"label": v, "value": v} for v in unique]


class TableParams:
    """List query: ?search=&sort_by=&sort_dir=&page_index=&page_size="""

    def __init__(
        self,
        search: str | None = Query(
            None,
            description="Free text, or structured filter col1:v1,v2;col2:v3"
        ),
        sort_by: str | None = None,
        sort_dir: str = Query("asc", pattern="^(asc|desc)$"),
        page_index: int = Query(0, ge=0),
        page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    ):
        self.search = search
        self.sort_by = sort_by
        self.sort_dir = sort_dir
        self.page_index = page_index
        self.page_size = page_size

    def view(self, columns, records, key="id", column_filters=None, range_filters=None) -> TableView:
        try:
            view = TableView(columns, records, page_size=self.page_size, key=key)

            for column_id, values in (column_filters or {}).items():
                view.set_column_filter(column_id, values)
            for column_id, (low, high) in (range_filters or {}).items():
                view.set_range_filter(column_id, low, high)

            view.set_global_filter(self.search)
            if self.sort_by:
                view.set_sort(self.sort_by, self.sort_dir)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        view.goto_page(self.page_index)
        return view
