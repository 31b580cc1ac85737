"""Tests for the referral and invitation composers, PDF rendering and the file surface."""

from __future__ import annotations

from datetime import date

import pytest

from conduct.documents import (
    Document,
    DocumentPDF,
    DocumentSurface,
    FileSurface,
    GuardianInvitation,
    ReferralContext,
    compose_counselor_referral,
    compose_guardian_invitation,
    render_pdf,
)
from conduct.documents.referral import (
    LONG_PLACEHOLDER,
    PLACEHOLDER,
    degree_name,
    localized,
    plain,
    slugify,
)
from conduct.exceptions import DocumentRenderError
from tests.conftest import make_violation


def _referral(**overrides):
    violation = make_violation(**overrides)
    task = violation.procedure(1).task(13)
    context = ReferralContext(issue_date=date(2024, 1, 3), school_name="Al Noor School")
    return compose_counselor_referral(violation, task, context)


def _invitation(**overrides) -> GuardianInvitation:
    values = dict(
        school_name="Al Noor School",
        student_name="S1",
        grade="Grade 3",
        class_name="A",
        meeting_day="Sunday",
        meeting_date_hijri="1445-06-21",
        meeting_date_gregorian="2024-01-03",
        meeting_purpose="Discuss repeated lateness",
        meeting_time="09:00",
        issue_date_hijri="1445-06-19",
        issue_date_gregorian="2024-01-01",
    )
    values.update(overrides)
    return GuardianInvitation(**values)


class TestHelpers:
    def test_plain(self):
        assert plain(None) == PLACEHOLDER
        assert plain("   ") == PLACEHOLDER
        assert plain("", LONG_PLACEHOLDER) == LONG_PLACEHOLDER
        assert plain(" a&b ") == "a&b"
        assert plain(3) == "3"

    def test_localized_escapes_wording_not_inserted_html(self):
        assert localized("referral.greeting", "en", counselor="<b>x</b>") == "Dear <b>x</b>,"
        assert localized("referral.request", "en").startswith("Please follow up on the student's")

    def test_slugify(self):
        assert slugify("Ali Hassan") == "Ali_Hassan"
        assert slugify("علي حسن") == "علي_حسن"
        assert slugify("../etc/passwd") == "etc_passwd"
        assert slugify("  ") == "document"


class TestCounselorReferral:
    def test_fields_are_printed(self):
        document = _referral()

        assert isinstance(document, Document)
        assert document.title == "Counselor referral - S1"
        assert document.filename == "referral_S1.html"
        html = document.html
        assert "CONFIDENTIAL" in html
        assert '<span class="info-value">v1</span>' in html
        assert '<span class="info-value">Second</span>' in html
        assert "Late to class" in html
        assert "Grade 3 A" in html
        assert "2024-01-03" in html
        assert "Al Noor School" in html
        assert '<p class="task">Refer to counselor</p>' in html
        assert "Name: Ms. Noura" in html

    def test_missing_fields_use_placeholders(self):
        html = _referral(description="", reported_by="").html

        assert f'<p class="details">{LONG_PLACEHOLDER}</p>' in html
        assert f'Reported by:</span> <span class="info-value">{PLACEHOLDER}</span>' in html
        assert f"Name: {LONG_PLACEHOLDER}" in html
        assert f"Region / {LONG_PLACEHOLDER}" in html

    def test_values_are_escaped(self):
        html = _referral(description="<script>alert(1)</script>").html
        assert "<script>" not in html
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html

    def test_filename_falls_back_to_reference(self):
        document = _referral(student_name="")
        assert document.filename == "referral_v1.html"
        assert document.title == f"Counselor referral - {PLACEHOLDER}"

    def test_default_context_uses_today(self):
        violation = make_violation()
        document = compose_counselor_referral(violation, violation.procedure(1).task(11))
        assert date.today().isoformat() in document.html


class TestGuardianInvitation:
    def test_fields_are_printed(self):
        document = compose_guardian_invitation(_invitation())

        assert document.filename == "invitation_S1.html"
        assert document.title == "Guardian invitation - S1"
        html = document.html
        assert "Discuss repeated lateness" in html
        assert "Sunday" in html
        assert "1445-06-21" in html
        assert "09:00" in html

    def test_optional_fields_use_placeholders(self):
        html = compose_guardian_invitation(_invitation()).html
        assert f"<span>Region</span>\n        <span>{PLACEHOLDER}</span>" in html
        assert f'Name: <span class="invitation-highlight">{PLACEHOLDER}</span>' in html

    def test_principal_is_printed(self):
        html = compose_guardian_invitation(_invitation(principal_name="Mr. Saad")).html
        assert "Mr. Saad" in html


class TestFileSurface:
    def test_export_writes_file(self, tmp_path):
        surface = FileSurface(tmp_path / "out", browser=False)
        path = surface.export(_referral())

        assert path == tmp_path / "out" / "referral_S1.html"
        assert "CONFIDENTIAL" in path.read_text(encoding="utf-8")

    def test_open_hands_file_to_browser(self, tmp_path, monkeypatch):
        opened = []
        monkeypatch.setattr("conduct.documents.surface.webbrowser.open", opened.append)
        surface = FileSurface(tmp_path)

        surface.print(_referral())

        assert opened == [(tmp_path / "referral_S1.html").resolve().as_uri()]

    def test_browser_disabled(self, tmp_path, monkeypatch):
        opened = []
        monkeypatch.setattr("conduct.documents.surface.webbrowser.open", opened.append)
        FileSurface(tmp_path, browser=False).open(_referral())
        assert opened == []
        assert (tmp_path / "referral_S1.html").exists()

    def test_satisfies_protocol(self, tmp_path):
        assert isinstance(FileSurface(tmp_path), DocumentSurface)

    def test_pdf_export(self, tmp_path):
        surface = FileSurface(tmp_path, browser=False, output_format="pdf")
        path = surface.export(_referral())

        assert path == tmp_path / "referral_S1.pdf"
        assert path.read_bytes().startswith(b"%PDF-")
        assert not (tmp_path / "referral_S1.html").exists()

    def test_pdf_is_opened_in_browser(self, tmp_path, monkeypatch):
        opened = []
        monkeypatch.setattr("conduct.documents.surface.webbrowser.open", opened.append)
        FileSurface(tmp_path, output_format="pdf").open(_referral())
        assert opened == [(tmp_path / "referral_S1.pdf").resolve().as_uri()]

    def test_pdf_failure_writes_nothing(self, tmp_path):
        surface = FileSurface(tmp_path / "out", output_format="pdf")
        document = Document(title="Bare", html="<p></p>", filename="bare.html")
        with pytest.raises(DocumentRenderError):
            surface.export(document)
        assert not (tmp_path / "out").exists()

    def test_unknown_format_is_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            FileSurface(tmp_path, output_format="docx")


class TestLocale:
    def test_english_is_left_to_right(self):
        html = _referral().html
        assert '<html lang="en" dir="ltr">' in html

    def test_arabic_referral(self):
        violation = make_violation()
        context = ReferralContext(issue_date=date(2024, 1, 3), school_name="مدرسة النور")
        document = compose_counselor_referral(
            violation, violation.procedure(1).task(13), context, locale="ar"
        )

        assert document.locale == "ar"
        assert document.title == "إحالة طالب للموجه الطلابي - S1"
        assert document.filename == "referral_S1.html"
        html = document.html
        assert '<html lang="ar" dir="rtl">' in html
        assert '<span class="secret">سري</span>' in html
        assert '<span class="info-value">الثانية</span>' in html
        assert "مدرسة النور" in html
        assert "CONFIDENTIAL" not in html
        assert "Reported by" not in html

    def test_arabic_invitation(self):
        document = compose_guardian_invitation(_invitation(meeting_day="الأحد"), locale="ar")
        html = document.html
        assert '<html lang="ar" dir="rtl">' in html
        assert "خطاب دعوة ولي الأمر" in html
        assert '<span class="invitation-highlight">الأحد</span>' in html
        assert "Guardian invitation letter" not in html

    def test_unknown_degree_prints_number(self):
        assert degree_name(7, "ar") == "7"
        assert degree_name(3, "ar") == "الثالثة"
        assert degree_name(3) == "Third"


class TestSections:
    def test_referral_sections_carry_plain_values(self):
        document = _referral(description="<b>late</b>")
        header = document.sections[0]

        assert header.heading == "CONFIDENTIAL - Student referral to the counselor"
        assert ("School", "Al Noor School") in header.fields
        assert ("Date", "2024-01-03") in header.fields
        details = next(s for s in document.sections if s.heading == "Additional details")
        # Plain text, not HTML.
        assert details.text == "<b>late</b>"
        action = next(s for s in document.sections if s.heading == "Required action")
        assert action.text == "Refer to counselor"

    def test_invitation_sections(self):
        document = compose_guardian_invitation(_invitation())
        body = document.sections[1].text
        assert "Dear guardian of S1," in body
        assert "Sunday, 2024-01-03 (1445-06-21) at 09:00" in body
        assert document.sections[0].fields[1] == ("Region", PLACEHOLDER)


class TestPdf:
    def test_renders_pdf_bytes(self):
        content = render_pdf(_referral())
        assert content.startswith(b"%PDF-")
        assert content.rstrip().endswith(b"%%EOF")

    def test_arabic_without_unicode_font_still_renders(self):
        violation = make_violation(student_name="علي حسن")
        document = compose_counselor_referral(
            violation, violation.procedure(1).task(13), locale="ar"
        )
        assert render_pdf(document).startswith(b"%PDF-")

    def test_core_font_replaces_unencodable_text(self):
        assert DocumentPDF("t").clean("Ali علي") == "Ali ???"
        assert DocumentPDF("t").clean("café") == "café"

    def test_document_without_sections_is_refused(self):
        document = Document(title="Bare", html="<p></p>", filename="bare.html")
        with pytest.raises(DocumentRenderError):
            render_pdf(document)
