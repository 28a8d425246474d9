from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

# the built-in PDF fonts have no rupee glyph
CURRENCY = "Rs."
LINE = 20


def write_invoice(order, stream):
    """Draws a one-page (or longer) A4 invoice for ``order`` into ``stream``."""
    width, height = A4
    p = canvas.Canvas(stream, pagesize=A4)
    p.setTitle(f"Invoice {order.order_number}")

    p.setFont("Helvetica-Bold", 16)
    p.drawString(50, height - 50, "SportsAmigo Shop - Invoice")

    p.setFont("Helvetica", 11)
    y = height - 90
    for label, value in (
        ("Order", order.order_number),
        ("Date", order.created_at.strftime("%d %b %Y")),
        ("Customer", order.full_name),
        ("Phone", order.phone),
        ("Email", order.email or "N/A"),
        ("Ship to", order.shipping_address),
        ("Payment", f"{order.payment_method} ({order.payment_status})"),
        ("Status", order.get_status_display()),
    ):
        p.drawString(50, y, f"{label}: {value}")
        y -= LINE

    y -= LINE
    p.setFont("Helvetica-Bold", 11)
    p.drawString(50, y, "Item")
    p.drawString(330, y, "Qty")
    p.drawString(380, y, "Price")
    p.drawString(470, y, "Subtotal")
    p.setFont("Helvetica", 11)

    for item in order.items.all():
        y -= LINE
        if y < 80:
            p.showPage()
            p.setFont("Helvetica", 11)
            y = height - 50
        p.drawString(50, y, item.name[:45])
        p.drawString(330, y, str(item.quantity))
        p.drawString(380, y, f"{CURRENCY} {item.price:,.2f}")
        p.drawString(470, y, f"{CURRENCY} {item.total_price:,.2f}")

    y -= LINE * 2
    p.setFont("Helvetica-Bold", 12)
    p.drawString(380, y, f"Total: {CURRENCY} {order.total_amount:,.2f}")

    p.showPage()
    p.save()
    return stream
