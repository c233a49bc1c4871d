import os
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from datetime import datetime

from cpq.config import settings
from cpq.utils.address import format_address
from cpq.utils.pricing import ADDITIONAL_COSTS


def _new_page_if_needed(c, y, height, limit=100):
    if y < limit:
        c.showPage()
        c.setFont("Helvetica", 10)
        return height - 60
    return y


def generate_quote_pdf(quote, customer):
    # Ensure directory exists
    os.makedirs(settings.generated_dir, exist_ok=True)

    file_path = os.path.join(settings.generated_dir, f"quote_{quote.ref_no}.pdf")

    c = canvas.Canvas(file_path, pagesize=A4)
    width, height = A4

    y = height - 60

    # -------------------------
    # HEADER
    # -------------------------
    c.setFont("Helvetica-Bold", 16)
    c.drawString(50, y, "QUOTATION")
    y -= 30

    c.setFont("Helvetica", 10)
    c.drawString(50, y, f"Ref No: {quote.ref_no}")
    y -= 15
    c.drawString(50, y, f"Date: {quote.invoice_date.strftime('%d-%m-%Y')}")
    y -= 15
    c.drawString(50, y, f"Status: {quote.status.value}")
    y -= 20
    c.setFont("Helvetica-Bold", 10)
    c.drawString(50, y, "From:")
    y -= 15
    c.setFont("Helvetica", 10)
    c.drawString(50, y, quote.company_name or settings.company_name)
    y -= 25

    if customer:
        c.setFont("Helvetica-Bold", 10)
        c.drawString(50, y, "To:")
        y -= 15
        c.setFont("Helvetica", 10)
        c.drawString(50, y, customer.name)
        y -= 15
        billing = format_address(customer, "billing")
        if billing:
            c.drawString(50, y, billing[:95])
            y -= 15
        if customer.gst_number:
            c.drawString(50, y, f"GSTIN: {customer.gst_number}")
            y -= 15
        if customer.email:
            c.drawString(50, y, f"Email: {customer.email}")
            y -= 15
    y -= 10

    # -------------------------
    # TABLE HEADER
    # -------------------------
    c.setFont("Helvetica-Bold", 10)
    c.drawString(50, y, "Item")
    c.drawString(250, y, "Qty")
    c.drawString(290, y, "Price")
    c.drawString(350, y, "Disc %")
    c.drawString(400, y, "Tax %")
    c.drawString(460, y, "Amount")
    y -= 10

    c.line(50, y, 520, y)
    y -= 15

    # -------------------------
    # ITEMS
    # -------------------------
    c.setFont("Helvetica", 10)

    for item in quote.items:
        c.drawString(50, y, item.product_name[:35])
        c.drawRightString(275, y, str(item.quantity))
        c.drawRightString(340, y, f"{item.unit_price:.2f}")
        c.drawRightString(385, y, f"{item.discount:g}")
        c.drawRightString(430, y, f"{item.tax:g}")
        c.drawRightString(515, y, f"{item.amount:.2f}")

        y -= 15
        y = _new_page_if_needed(c, y, height)

    # -------------------------
    # TOTAL
    # -------------------------
    y -= 10
    c.setFont("Helvetica-Bold", 11)
    c.line(300, y, 520, y)
    y -= 15
    c.drawRightString(430, y, "Total:")
    c.drawRightString(515, y, f"{quote.total_amount:.2f}")

    if quote.remarks:
        y -= 30
        c.setFont("Helvetica", 10)
        c.drawString(50, y, f"Remarks: {quote.remarks[:90]}")

    c.save()
    return file_path


def generate_order_pdf(order):
    os.makedirs(settings.generated_dir, exist_ok=True)

    file_path = os.path.join(settings.generated_dir, f"order_{order.id}.pdf")
    c = canvas.Canvas(file_path, pagesize=A4)
    width, height = A4

    y = height - 60

    # -------------------------
    # HEADER
    # -------------------------
    c.setFont("Helvetica-Bold", 16)
    c.drawString(50, y, "SALES ORDER")
    y -= 30

    c.setFont("Helvetica", 10)
    c.drawString(50, y, f"Order No: {order.order_number}")
    y -= 15
    order_date = order.order_date or order.created_at
    c.drawString(50, y, f"Order Date: {order_date.strftime('%d-%m-%Y')}")
    y -= 15
    c.drawString(50, y, f"Status: {order.status}")
    y -= 15
    c.drawString(50, y, f"Customer: {order.customer_name or '-'}")
    y -= 15
    if order.customer_gst:
        c.drawString(50, y, f"GSTIN: {order.customer_gst}")
        y -= 15
    if order.poc_name:
        c.drawString(50, y, f"Contact: {order.poc_name} ({order.poc_phone or '-'})")
        y -= 15

    for label, prefix in (("Billing", "billing"), ("Shipping", "shipping")):
        address = format_address(order, prefix)
        if address:
            c.drawString(50, y, f"{label}: {address[:90]}")
            y -= 15
    y -= 10

    # -------------------------
    # TABLE HEADER
    # -------------------------
    c.setFont("Helvetica-Bold", 10)
    c.drawString(50, y, "Item")
    c.drawString(250, y, "Qty")
    c.drawString(290, y, "Rate")
    c.drawString(350, y, "Discount")
    c.drawString(410, y, "Tax")
    c.drawString(460, y, "Total")
    y -= 10

    c.line(50, y, 520, y)
    y -= 15

    # -------------------------
    # ITEMS
    # -------------------------
    c.setFont("Helvetica", 10)

    for item in order.items:
        c.drawString(50, y, item.product_name[:35])
        c.drawRightString(275, y, str(item.quantity))
        c.drawRightString(340, y, f"{item.unit_price:.2f}")
        c.drawRightString(400, y, f"{item.discount_amount:.2f}")
        c.drawRightString(450, y, f"{item.tax_amount:.2f}")
        c.drawRightString(515, y, f"{item.total_amount:.2f}")

        y -= 15
        y = _new_page_if_needed(c, y, height)

    # -------------------------
    # TOTALS
    # -------------------------
    y -= 10
    c.setFont("Helvetica", 10)

    c.drawRightString(430, y, "Items total:")
    c.drawRightString(515, y, f"{order.total_amount:.2f}")
    y -= 15

    for name in ADDITIONAL_COSTS:
        amount = getattr(order, f"{name}_amount") or 0
        if not amount:
            continue
        inclusive = getattr(order, f"{name}_inclusive")
        label = name.replace("_", " ").title()
        c.drawRightString(430, y, f"{label}{' (incl.)' if inclusive else ''}:")
        c.drawRightString(515, y, f"{amount:.2f}")
        y -= 15
        y = _new_page_if_needed(c, y, height, limit=80)

    c.setFont("Helvetica-Bold", 11)
    c.line(300, y, 520, y)
    y -= 15
    c.drawRightString(430, y, "Grand Total:")
    c.drawRightString(515, y, f"{order.grand_total:.2f}")

    y -= 25
    c.setFont("Helvetica", 9)
    c.drawString(50, y, f"Generated on: {datetime.now().strftime('%d-%m-%Y')}")

    c.save()
    return file_path
