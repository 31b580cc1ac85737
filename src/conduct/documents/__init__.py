"""Printable documents: counselor referral and guardian invitation."""

from conduct.documents.invitation import GuardianInvitation, compose_guardian_invitation
from conduct.documents.pdf import DocumentPDF, render_pdf
from conduct.documents.referral import (
    PLACEHOLDER,
    Document,
    ReferralContext,
    Section,
    compose_counselor_referral,
    referral_number,
)
from conduct.documents.surface import DocumentSurface, FileSurface

__all__ = [
    "PLACEHOLDER",
    "Document",
    "DocumentPDF",
    "DocumentSurface",
    "FileSurface",
    "GuardianInvitation",
    "ReferralContext",
    "Section",
    "compose_counselor_referral",
    "compose_guardian_invitation",
    "referral_number",
    "render_pdf",
]
