"""Output generation for interval reports (PDF, audit text)."""

from schedaudit.output.audit_generator import AuditGenerator
from schedaudit.output.pdf_generator import PDFGenerator

__all__ = [
    "AuditGenerator",
    "PDFGenerator",
]
