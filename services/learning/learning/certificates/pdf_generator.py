"""Certificate PDF rendering with ReportLab.

Pure utility, no DB or FastAPI imports. Produces a single landscape A4 page
with the program name, trainee name, issue date, certificate code and a QR
code pointing at the public verification page.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import datetime

import qrcode
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import cm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

BRAND_BLUE = colors.HexColor("#1a3366")
MUTED = colors.HexColor("#4d4d4d")
MAX_TITLE_CHARS = 70


@dataclass(frozen=True)
class CertificatePDFData:
    trainee_name: str
    program_name: str
    certificate_code: str
    issued_date: datetime
    verification_url: str


def _qr_png(url: str) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=6,
        border=1,
    )
    qr.add_data(url)
    qr.make(fit=True)
    buf = io.BytesIO()
    qr.make_image(fill_color="black", back_color="white").save(buf, format="PNG")
    buf.seek(0)
    return buf


def _truncate(text: str) -> str:
    if len(text) <= MAX_TITLE_CHARS:
        return text
    return text[: MAX_TITLE_CHARS - 3] + "..."


def generate_certificate_pdf(data: CertificatePDFData) -> bytes:
    buf = io.BytesIO()
    page_w, page_h = landscape(A4)
    c = canvas.Canvas(buf, pagesize=(page_w, page_h))
    c.setTitle(f"Certificate {data.certificate_code}")

    margin = 1.5 * cm
    c.setStrokeColor(BRAND_BLUE)
    c.setLineWidth(3)
    c.rect(margin, margin, page_w - 2 * margin, page_h - 2 * margin)

    center_x = page_w / 2

    c.setFillColor(BRAND_BLUE)
    c.setFont("Helvetica-Bold", 26)
    c.drawCentredString(center_x, page_h - 4 * cm, "Certificate of Completion")
    c.setFillColor(MUTED)
    c.setFont("Helvetica", 12)
    c.drawCentredString(center_x, page_h - 4.9 * cm, "UNIPOD Prototyping Development Program")

    c.setFont("Helvetica", 12)
    c.drawCentredString(center_x, page_h - 7 * cm, "This is to certify that")

    c.setFillColor(colors.HexColor("#1a1a33"))
    c.setFont("Helvetica-Bold", 24)
    c.drawCentredString(center_x, page_h - 8.3 * cm, _truncate(data.trainee_name))

    c.setFillColor(MUTED)
    c.setFont("Helvetica", 12)
    c.drawCentredString(center_x, page_h - 9.5 * cm, "has successfully completed")

    c.setFillColor(BRAND_BLUE)
    c.setFont("Helvetica-Bold", 18)
    c.drawCentredString(center_x, page_h - 10.7 * cm, _truncate(data.program_name))

    c.setFillColor(MUTED)
    c.setFont("Helvetica", 11)
    c.drawCentredString(
        center_x, page_h - 12.2 * cm, f"Issued on {data.issued_date.strftime('%B %d, %Y')}",
    )

    qr_size = 3 * cm
    c.drawImage(
        ImageReader(_qr_png(data.verification_url)),
        page_w - 3.5 * cm - qr_size,
        2.5 * cm,
        width=qr_size,
        height=qr_size,
    )

    c.setFillColor(colors.HexColor("#808080"))
    c.setFont("Helvetica", 9)
    c.drawCentredString(center_x, 2.9 * cm, f"Certificate ID: {data.certificate_code}")
    c.setFont("Helvetica", 7)
    c.drawCentredString(center_x, 2.3 * cm, f"Verify at: {data.verification_url}")

    c.showPage()
    c.save()
    return buf.getvalue()
