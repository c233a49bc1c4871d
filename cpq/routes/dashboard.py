from collections import Counter, defaultdict
from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cpq import models
from cpq.auth import get_approved_user
from cpq.database import get_db
from cpq.utils.table_view import format_currency

router = APIRouter(
    prefix="/api/dashboard",
    tags=["Dashboard"]
)

TREND_MONTHS = 6
TOP_N = 5


def _month_starts(today: date, count: int) -> list[date]:
    """First day of the current month and the count - 1 months before it, oldest first."""
    year, month = today.year, today.month
    starts = []
    for _ in range(count):
        starts.append(date(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(starts))


def _top(totals: dict, n: int = TOP_N) -> list:
    return sorted(totals.items(), key=lambda kv: kv[1], reverse=True)[:n]


@router.get("/")
def dashboard(
    today: date | None = None,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_approved_user)
):
    """
    Company-wide quote and customer figures.
    If no date is provided, defaults to today.
    """
    if today is None:
        today = date.today()

    quotes = (
        db.query(models.Quote)
        .filter(models.Quote.company_name == user.company_name)
        .all()
    )
    customers = (
        db.query(models.Customer)
        .filter(models.Customer.company_name == user.company_name)
        .all()
    )
    total_products = (
        db.query(models.Product)
        .filter(models.Product.company_name == user.company_name)
        .count()
    )

    # -------------------------
    # KPI CARDS
    # -------------------------
    total_quotes = len(quotes)
    total_quote_value = sum(q.total_amount or 0 for q in quotes)

    approved = [q for q in quotes if q.status == models.QuoteStatus.APPROVED]
    success_rate = (len(approved) / total_quotes) * 100 if total_quotes else 0

    since = datetime.combine(today, datetime.min.time()) - timedelta(days=30)
    new_customers = sum(1 for c in customers if c.created_at and c.created_at >= since)

    by_rep = defaultdict(float)
    quote_count_by_rep = Counter()
    by_customer = defaultdict(float)
    for q in quotes:
        by_rep[q.created_by] += q.total_amount or 0
        quote_count_by_rep[q.created_by] += 1
        by_customer[q.customer.name if q.customer else "Unknown"] += q.total_amount or 0

    top_rep = _top(by_rep, 1)

    # Approved quotes: time from creation to the last update
    durations = [
        (q.updated_at - q.created_at).total_seconds()
        for q in approved
        if q.updated_at and q.created_at
    ]
    avg_approval_days = (sum(durations) / len(durations)) / 86400 if durations else 0

    # -------------------------
    # CHARTS
    # -------------------------
    months = _month_starts(today, TREND_MONTHS)
    trend = {m: 0.0 for m in months}
    for q in quotes:
        if not q.invoice_date:
            continue
        key = date(q.invoice_date.year, q.invoice_date.month, 1)
        if key in trend:
            trend[key] += q.total_amount or 0

    status_counts = Counter(q.status.value for q in quotes)
    product_counts = Counter(item.product_name for q in quotes for item in q.items)
    industry_counts = Counter(c.industry for c in customers)

    return {
        "kpi_cards": {
            "total_quote_value": format_currency(total_quote_value),
            "quote_success_rate": f"{success_rate:.2f}",
            "total_active_customers": len(customers),
            "new_customers_added": new_customers,
            "top_sales_representative": top_rep[0][0] if top_rep else "N/A",
            "average_approval_time_days": f"{avg_approval_days:.2f}",
            "total_products": total_products,
            "total_quotes": total_quotes,
        },
        "charts": {
            "quote_trends": [
                {"month": m.strftime("%b %Y"), "total": trend[m]}
                for m in months
            ],
            "quote_status_distribution": [
                {"status": s, "count": n}
                for s, n in sorted(status_counts.items())
            ],
            "top_products": [
                {"product_name": name, "count": n}
                for name, n in product_counts.most_common(TOP_N)
            ],
            "customer_distribution": [
                {"industry": industry, "count": n}
                for industry, n in sorted(industry_counts.items())
            ],
        },
        "insights": {
            "top_customers": [
                {"customer_name": name, "total_value": value}
                for name, value in _top(by_customer)
            ],
            "quotes_by_person": [
                {"created_by": name, "quote_count": n}
                for name, n in quote_count_by_rep.most_common()
            ],
        },
    }
