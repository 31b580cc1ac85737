"""Counselor referral document composer.

Pure functions: a violation and the task that asks for the referral go in,
a self-contained printable HTML page comes out. Nothing here opens windows
or writes files; hand the Document to a DocumentSurface for that.

Missing optional fields render as a dotted placeholder so the printed form
has a visible line to fill in by hand. Wording comes from
:mod:`conduct.messages`, so an Arabic document is laid out right to left.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from html import escape

from conduct.messages import DEFAULT_LOCALE, message, text_direction
from conduct.models.violation import DEGREE_LABELS, TaskExecution, Violation

PLACEHOLDER = "........................"
LONG_PLACEHOLDER = ".............................................."


@dataclass(frozen=True)
class Section:
    """One block of a document as plain text, for renderers other than HTML.

    Fields:
        heading: Block heading; empty for untitled blocks.
        fields: ``(label, value)`` pairs printed one per line.
        text: Free text printed after the fields.
    """

    heading: str = ""
    fields: tuple[tuple[str, str], ...] = ()
    text: str = ""


@dataclass(frozen=True)
class Document:
    """A composed, self-contained document.

    Fields:
        title: Window/page title.
        html: Full HTML document with embedded styles.
        filename: Suggested file name for export.
        locale: Locale the document was worded in.
        sections: The same content as plain-text blocks.
    """

    title: str
    html: str
    filename: str
    locale: str = DEFAULT_LOCALE
    sections: tuple[Section, ...] = ()


@dataclass(frozen=True)
class ReferralContext:
    """Values that come from outside the violation record."""

    issue_date: date = field(default_factory=date.today)
    school_name: str | None = None
    region: str | None = None


def plain(value: object, placeholder: str = PLACEHOLDER) -> str:
    """Stripped text of a value, or the placeholder when it is blank."""
    if value is None:
        return placeholder
    return str(value).strip() or placeholder


def localized(key: str, locale: str, **html: str) -> str:
    """Escaped message text; ``html`` values are inserted as given."""
    template = escape(message(key, locale), quote=False)
    return template.format(**html) if html else template


def degree_name(degree: int, locale: str = DEFAULT_LOCALE) -> str:
    """Ordinal name of a degree in ``locale``, or the raw number if unknown."""
    if degree not in DEGREE_LABELS:
        return str(degree)
    return message(f"degree.{degree}", locale)


def slugify(text: str) -> str:
    """File-name-safe form of ``text``; keeps letters of any script."""
    return re.sub(r"[^\w.-]+", "_", text.strip()).strip("_.") or "document"


def referral_number(violation: Violation) -> str:
    """Short reference printed on the form: the id's first segment."""
    return violation.id.split("-")[0]


_REFERRAL_STYLES = """
    * { box-sizing: border-box; }
    @page { size: A4; margin: 0; }
    body { font-family: 'Segoe UI', Tahoma, sans-serif; background: #f1f5f9; color: #0f172a; margin: 0; padding: 24px; }
    .sheet { width: 210mm; min-height: 297mm; margin: 0 auto; background: #fff; padding: 22mm 18mm; position: relative; }
    .header { display: flex; justify-content: space-between; align-items: flex-start; margin-bottom: 32px; font-size: 13px; line-height: 1.8; }
    .header .center { text-align: center; flex: 1; }
    .secret { border: 2px dashed #94a3b8; border-radius: 12px; padding: 6px 18px; font-weight: 700; letter-spacing: 4px; display: inline-block; margin-bottom: 12px; }
    .title { font-size: 24px; font-weight: 700; margin-bottom: 24px; }
    .text-block { font-size: 16px; line-height: 2; margin-bottom: 28px; }
    .highlight { border-bottom: 1px dotted #64748b; padding: 0 6px; }
    .info-grid { display: grid; grid-template-columns: repeat(2, minmax(0, 1fr)); gap: 16px; margin-bottom: 36px; font-size: 15px; }
    .info-label { font-weight: 600; min-width: 120px; display: inline-block; }
    .info-value { border-bottom: 1px dotted #94a3b8; padding-bottom: 4px; }
    .details { display: block; min-height: 60px; padding: 12px; border-radius: 12px; background: #f1f5f9; border: 1px dashed #cbd5e1; }
    .task { border-inline-start: 3px solid #2563eb; padding: 8px 12px; border-radius: 12px; background: #eff6ff; }
    .signature { margin-top: 48px; display: flex; justify-content: space-between; gap: 24px; }
    .signature .block { flex: 1; border: 1px solid #cbd5e1; border-radius: 12px; padding: 18px; background: #f8fafc; font-size: 14px; line-height: 2; min-height: 130px; }
    .footer { position: absolute; bottom: 18mm; left: 18mm; right: 18mm; text-align: center; font-size: 12px; color: #94a3b8; }
    @media print {
      body { background: #fff; padding: 0; }
      .sheet { margin: 0; }
    }
"""


def _highlight(value: str) -> str:
    return f'<span class="highlight">{escape(value)}</span>'


def compose_counselor_referral(
    violation: Violation,
    task: TaskExecution,
    context: ReferralContext | None = None,
    *,
    locale: str = DEFAULT_LOCALE,
) -> Document:
    """Build the counselor referral form for ``violation``.

    Args:
        violation: The violation being referred.
        task: The procedure task that requests the referral; its title is
            printed as the required action.
        context: Issue date and school details; defaults to today and
            placeholders.
        locale: Wording and text direction of the form.
    """
    context = context or ReferralContext()

    def t(key: str, **html: str) -> str:
        return localized(f"referral.{key}", locale, **html)

    def raw(key: str, **params: object) -> str:
        return message(f"referral.{key}", locale, **params)

    student = plain(violation.student_name)
    student_class = plain(f"{violation.grade or ''} {violation.class_name or ''}")
    degree = degree_name(violation.degree, locale)
    violation_type = plain(violation.type)
    incident_date = plain(violation.date)
    reporter = plain(violation.reported_by)
    signer = reporter if reporter != PLACEHOLDER else LONG_PLACEHOLDER
    description = plain(violation.description, LONG_PLACEHOLDER)
    region = plain(context.region, LONG_PLACEHOLDER)
    school = plain(context.school_name, LONG_PLACEHOLDER)
    issued = context.issue_date.isoformat()
    number = referral_number(violation)
    action = plain(task.title)

    title = raw("title", student=violation.student_name or PLACEHOLDER)
    body = f"""<!DOCTYPE html>
<html lang="{escape(locale)}" dir="{text_direction(locale)}">
<head>
  <meta charset="utf-8" />
  <title>{escape(title)}</title>
  <style>{_REFERRAL_STYLES}  </style>
</head>
<body>
  <div class="sheet" id="referral-sheet">
    <header class="header">
      <div class="left">
        <div>{t("region")} / {escape(region)}</div>
        <div>{t("school")} / {escape(school)}</div>
      </div>
      <div class="center">
        <span class="secret">{t("confidential")}</span>
        <div class="title">{t("heading")}</div>
      </div>
      <div class="right">
        <div>{t("date")}: <span>{escape(issued)}</span></div>
        <div>{t("ref")}: {PLACEHOLDER}</div>
      </div>
    </header>

    <section class="text-block">
      <p>{t("greeting", counselor=_highlight(raw("counselor")))}</p>
      <p>
        {t("intro", student=_highlight(student), student_class=_highlight(student_class), degree=_highlight(degree), violation_type=_highlight(violation_type), incident_date=_highlight(incident_date))}
      </p>
      <p>
        {t("request")}
      </p>
    </section>

    <section class="info-grid">
      <div><span class="info-label">{t("number")}:</span> <span class="info-value">{escape(number)}</span></div>
      <div><span class="info-label">{t("degree")}:</span> <span class="info-value">{escape(degree)}</span></div>
      <div><span class="info-label">{t("type")}:</span> <span class="info-value">{escape(violation_type)}</span></div>
      <div><span class="info-label">{t("reporter")}:</span> <span class="info-value">{escape(reporter)}</span></div>
    </section>

    <section class="text-block">
      <p>{t("details")}:</p>
      <p class="details">{escape(description)}</p>
    </section>

    <section class="text-block">
      <p>{t("action")}:</p>
      <p class="task">{escape(action)}</p>
    </section>

    <div class="signature">
      <div class="block">
        <h3>{t("counselor.block")}</h3>
        <p>{t("name")}: {LONG_PLACEHOLDER}</p>
        <p>{t("signature")}: {LONG_PLACEHOLDER}</p>
        <p>{t("date")}: {LONG_PLACEHOLDER}</p>
      </div>
      <div class="block">
        <h3>{t("vice_principal")}</h3>
        <p>{t("name")}: {escape(signer)}</p>
        <p>{t("signature")}: {LONG_PLACEHOLDER}</p>
        <p>{t("stamp")}: {LONG_PLACEHOLDER}</p>
      </div>
    </div>

    <footer class="footer">{t("footer")}</footer>
  </div>
</body>
</html>
"""
    sections = (
        Section(
            heading=f'{raw("confidential")} - {raw("heading")}',
            fields=(
                (raw("region"), region),
                (raw("school"), school),
                (raw("date"), issued),
            ),
        ),
        Section(
            text="\n".join(
                (
                    raw("greeting", counselor=raw("counselor")),
                    raw(
                        "intro",
                        student=student,
                        student_class=student_class,
                        degree=degree,
                        violation_type=violation_type,
                        incident_date=incident_date,
                    ),
                    raw("request"),
                )
            ),
        ),
        Section(
            fields=(
                (raw("number"), number),
                (raw("degree"), degree),
                (raw("type"), violation_type),
                (raw("reporter"), reporter),
            ),
        ),
        Section(heading=raw("details"), text=description),
        Section(heading=raw("action"), text=action),
        Section(
            heading=raw("counselor.block"),
            fields=(
                (raw("name"), LONG_PLACEHOLDER),
                (raw("signature"), LONG_PLACEHOLDER),
                (raw("date"), LONG_PLACEHOLDER),
            ),
        ),
        Section(
            heading=raw("vice_principal"),
            fields=(
                (raw("name"), signer),
                (raw("signature"), LONG_PLACEHOLDER),
                (raw("stamp"), LONG_PLACEHOLDER),
            ),
        ),
        Section(text=raw("footer")),
    )
    return Document(
        title=title,
        html=body,
        filename=f"referral_{slugify(violation.student_name or number)}.html",
        locale=locale,
        sections=sections,
    )
