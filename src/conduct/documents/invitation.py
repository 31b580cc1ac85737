"""Guardian meeting invitation letter, in English or Arabic."""

from __future__ import annotations

from dataclasses import dataclass
from html import escape

from conduct.documents.referral import (
    PLACEHOLDER,
    Document,
    Section,
    localized,
    plain,
    slugify,
)
from conduct.messages import DEFAULT_LOCALE, message, text_direction


@dataclass(frozen=True)
class GuardianInvitation:
    """Everything printed on an invitation letter.

    Dates are passed pre-formatted so callers pick the calendar(s) they
    print; ``region`` and ``principal_name`` are optional.
    """

    school_name: str
    student_name: str
    grade: str
    class_name: str
    meeting_day: str
    meeting_date_hijri: str
    meeting_date_gregorian: str
    meeting_purpose: str
    meeting_time: str
    issue_date_hijri: str
    issue_date_gregorian: str
    region: str | None = None
    principal_name: str | None = None


_INVITATION_STYLES = """
    * { box-sizing: border-box; }
    @page { size: A4; margin: 12mm; }
    body { font-family: 'Segoe UI', Tahoma, sans-serif; color: #0f172a; margin: 0; }
    .invitation-sheet { width: 186mm; margin: 0 auto; font-size: 13px; line-height: 1.9; }
    .invitation-header-line { display: flex; justify-content: space-between; font-weight: 600; }
    .invitation-title { text-align: center; font-size: 20px; margin: 8mm 0 6mm; }
    .invitation-info-table { width: 100%; border-collapse: collapse; margin-bottom: 6mm; }
    .invitation-info-table th, .invitation-info-table td { border: 1px solid #cbd5e1; padding: 2mm 3mm; text-align: start; }
    .invitation-info-table th { background: #f1f5f9; width: 18%; }
    .invitation-highlight { border-bottom: 1px dotted #64748b; padding: 0 4px; font-weight: 600; }
    .invitation-purpose-box { margin-top: 4mm; border: 1px solid #cbd5e1; border-radius: 8px; padding: 3mm 4mm; background: #f8fafc; }
    .invitation-signature-row { display: flex; justify-content: space-between; gap: 10mm; margin-top: 10mm; }
    .invitation-signature-block { flex: 1; }
    .invitation-signature-line { border-top: 1px solid #334155; }
    .invitation-response-box { margin-top: 10mm; border: 1px dashed #94a3b8; border-radius: 8px; padding: 4mm; }
    .checkbox-line { display: flex; align-items: center; gap: 3mm; }
    .checkbox { width: 4mm; height: 4mm; border: 1px solid #334155; display: inline-block; }
    .invitation-footer-note { margin-top: 8mm; font-size: 11px; color: #64748b; text-align: center; }
"""


def compose_guardian_invitation(
    data: GuardianInvitation, *, locale: str = DEFAULT_LOCALE
) -> Document:
    """Build the printable invitation letter for a student's guardian."""

    def t(key: str, **html: str) -> str:
        return localized(f"invitation.{key}", locale, **html)

    def raw(key: str, **params: object) -> str:
        return message(f"invitation.{key}", locale, **params)

    student = plain(data.student_name)
    school = plain(data.school_name)
    region = plain(data.region)
    grade = plain(data.grade)
    class_name = plain(data.class_name)
    day = plain(data.meeting_day)
    gregorian = plain(data.meeting_date_gregorian)
    hijri = plain(data.meeting_date_hijri)
    time = plain(data.meeting_time)
    purpose = plain(data.meeting_purpose)
    principal = plain(data.principal_name)
    issued_hijri = plain(data.issue_date_hijri)
    issued = f"{plain(data.issue_date_gregorian)} ({issued_hijri})"

    title = raw("title", student=data.student_name or PLACEHOLDER)
    body = f"""<!DOCTYPE html>
<html lang="{escape(locale)}" dir="{text_direction(locale)}">
<head>
  <meta charset="utf-8" />
  <title>{escape(title)}</title>
  <style>{_INVITATION_STYLES}  </style>
</head>
<body>
  <div class="invitation-sheet">
    <header class="invitation-header">
      <div class="invitation-header-line">
        <span>{t("ministry")}</span>
        <span>{escape(school)}</span>
      </div>
      <div class="invitation-header-line">
        <span>{t("region")}</span>
        <span>{escape(region)}</span>
      </div>
    </header>

    <h1 class="invitation-title">{t("heading")}</h1>

    <table class="invitation-info-table">
      <tbody>
        <tr>
          <th>{t("student")}</th>
          <td>{escape(student)}</td>
          <th>{t("grade")}</th>
          <td>{escape(grade)}</td>
        </tr>
        <tr>
          <th>{t("class")}</th>
          <td>{escape(class_name)}</td>
          <th>{t("date")}</th>
          <td>{escape(issued_hijri)}</td>
        </tr>
      </tbody>
    </table>

    <section class="invitation-body">
      <p>{t("greeting", student=_highlight(student))}</p>
      <p>
        {t("request", day=_highlight(day), gregorian=_highlight(gregorian), hijri=escape(hijri), time=_highlight(time))}
      </p>
      <div class="invitation-purpose-box">
        <strong>{t("purpose")}:</strong> {escape(purpose)}
      </div>
      <p>{t("thanks")}</p>
    </section>

    <section class="invitation-signature-row">
      <div class="invitation-signature-block">
        <p><strong>{t("principal")}</strong></p>
        <p>{t("name")}: <span class="invitation-highlight">{escape(principal)}</span></p>
        <div class="invitation-signature-line"></div>
        <p>{t("signature")}</p>
      </div>
      <div class="invitation-signature-block">
        <p><strong>{t("stamp")}</strong></p>
        <div class="invitation-signature-line"></div>
      </div>
    </section>

    <section class="invitation-response-box">
      <p><strong>{t("reply")}:</strong></p>
      <div class="checkbox-line"><span class="checkbox"></span><span>{t("attend")}</span></div>
      <div class="checkbox-line"><span class="checkbox"></span><span>{t("decline")}</span></div>
      <p>{t("name")}: {PLACEHOLDER} &nbsp; {t("signature")}: {PLACEHOLDER}</p>
    </section>

    <footer class="invitation-footer-note">
      {t("issued")}: {escape(issued)}
    </footer>
  </div>
</body>
</html>
"""
    sections = (
        Section(
            heading=raw("heading"),
            fields=(
                (raw("ministry"), school),
                (raw("region"), region),
                (raw("student"), student),
                (raw("grade"), grade),
                (raw("class"), class_name),
                (raw("date"), issued_hijri),
            ),
        ),
        Section(
            text="\n".join(
                (
                    raw("greeting", student=student),
                    raw("request", day=day, gregorian=gregorian, hijri=hijri, time=time),
                )
            ),
        ),
        Section(heading=raw("purpose"), text=purpose),
        Section(text=raw("thanks")),
        Section(
            heading=raw("principal"),
            fields=(
                (raw("name"), principal),
                (raw("signature"), PLACEHOLDER),
                (raw("stamp"), PLACEHOLDER),
            ),
        ),
        Section(
            heading=raw("reply"),
            fields=((raw("name"), PLACEHOLDER), (raw("signature"), PLACEHOLDER)),
            text="\n".join((f"[ ] {raw('attend')}", f"[ ] {raw('decline')}")),
        ),
        Section(fields=((raw("issued"), issued),)),
    )
    return Document(
        title=title,
        html=body,
        filename=f"invitation_{slugify(data.student_name)}.html",
        locale=locale,
        sections=sections,
    )


def _highlight(value: str) -> str:
    return f'<span class="invitation-highlight">{escape(value)}</span>'
