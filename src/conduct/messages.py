"""Localised user-facing messages.

Fallback error texts shown in the passive error banner when the server does
not supply its own message, the verbs used on automation affordances, and
the wording of the printable documents. English is the default; Arabic matches the labels of the school back office.
"""

from __future__ import annotations

DEFAULT_LOCALE = "en"

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "students.load": "Could not load the student list",
        "reporters.load": "Could not load the list of reporting teachers",
        "violations.load": "Could not load the violation log",
        "violation.load": "Could not load violation details",
        "violation.create": "Could not record the new violation",
        "violation.create.refresh": "The violation was saved but the student data could not be refreshed",
        "violation.delete": "Could not delete the violation",
        "violation.delete.refresh": "The violation was deleted but the student data could not be refreshed",
        "procedure.toggle": "Could not update the procedure status",
        "procedure.task.toggle": "Could not update the task status",
        "procedure.notes": "Could not save the procedure notes",
        "catalog.config": "Failed to load behaviour settings",
        "catalog.violation_types": "Failed to load violation types",
        "catalog.procedures": "Failed to load procedures",
        "request.failed": "The request failed",
        "trigger.notify": "Send notification",
        "trigger.deduct": "Deduct {points} points",
        "trigger.deduct.generic": "Deduct points",
        "trigger.refer": "Refer",
        "trigger.invite": "Send invitation",
        "trigger.meeting": "Schedule meeting",
        "trigger.transfer": "Process transfer",
        "trigger.escalate": "Escalate to administration",
        "trigger.generic": "Execute automation",
        "trigger.executed": "Executed",
        "trigger.title": "Automation: {label}",
        "degree.1": "First",
        "degree.2": "Second",
        "degree.3": "Third",
        "degree.4": "Fourth",
        "referral.title": "Counselor referral - {student}",
        "referral.region": "Region",
        "referral.school": "School",
        "referral.confidential": "CONFIDENTIAL",
        "referral.heading": "Student referral to the counselor",
        "referral.date": "Date",
        "referral.ref": "Ref",
        "referral.greeting": "Dear {counselor},",
        "referral.counselor": "student counselor",
        "referral.intro": "We refer to you the student {student} of class {student_class}, for a behavioural issue of the {degree} degree, namely {violation_type}, recorded on {incident_date}.",
        "referral.request": "Please follow up on the student's case, study their situation, decide on a suitable intervention plan and keep us informed of the results.",
        "referral.number": "Violation no.",
        "referral.degree": "Degree",
        "referral.type": "Behaviour type",
        "referral.reporter": "Reported by",
        "referral.details": "Additional details",
        "referral.action": "Required action",
        "referral.counselor.block": "Student counselor",
        "referral.vice_principal": "Vice principal for student affairs",
        "referral.name": "Name",
        "referral.signature": "Signature",
        "referral.stamp": "Stamp",
        "referral.footer": "Generated electronically by the school follow-up system",
        "invitation.title": "Guardian invitation - {student}",
        "invitation.ministry": "Ministry of Education",
        "invitation.region": "Region",
        "invitation.heading": "Guardian invitation letter",
        "invitation.student": "Student",
        "invitation.grade": "Grade",
        "invitation.class": "Class",
        "invitation.date": "Invitation date",
        "invitation.greeting": "Dear guardian of {student},",
        "invitation.request": "We kindly ask you to visit the school on {day}, {gregorian} ({hijri}) at {time}.",
        "invitation.purpose": "Purpose of the meeting",
        "invitation.thanks": "Thank you for your cooperation in the interest of the student.",
        "invitation.principal": "School principal",
        "invitation.name": "Name",
        "invitation.signature": "Signature",
        "invitation.stamp": "Stamp",
        "invitation.reply": "Guardian's reply",
        "invitation.attend": "I acknowledge and will attend at the stated time.",
        "invitation.decline": "I am unable to attend for personal reasons.",
        "invitation.issued": "Issued",
    },
    "ar": {
        "students.load": "تعذر تحميل قائمة الطلاب",
        "reporters.load": "تعذر تحميل قائمة المعلمين المبلغين",
        "violations.load": "تعذر تحميل سجل المخالفات",
        "violation.load": "تعذر تحميل تفاصيل المخالفة",
        "violation.create": "تعذر رصد المخالفة الجديدة",
        "violation.create.refresh": "تم حفظ المخالفة لكن تعذر تحديث بيانات الطلاب",
        "violation.delete": "تعذر حذف المخالفة",
        "violation.delete.refresh": "تم الحذف لكن تعذر تحديث بيانات الطلاب",
        "procedure.toggle": "تعذر تحديث حالة الإجراء",
        "procedure.task.toggle": "تعذر تحديث حالة الخطوة",
        "procedure.notes": "تعذر حفظ ملاحظات الإجراء",
        "catalog.config": "فشل في تحميل الإعدادات",
        "catalog.violation_types": "فشل في تحميل أنواع المخالفات",
        "catalog.procedures": "فشل في تحميل الإجراءات",
        "request.failed": "تعذر تنفيذ الطلب",
        "trigger.notify": "إرسال إشعار",
        "trigger.deduct": "حسم {points} نقطة",
        "trigger.deduct.generic": "حسم النقاط",
        "trigger.refer": "إحالة",
        "trigger.invite": "إرسال دعوة",
        "trigger.meeting": "جدولة اجتماع",
        "trigger.transfer": "إجراء النقل",
        "trigger.escalate": "رفع للإدارة",
        "trigger.generic": "تنفيذ الأتمتة",
        "trigger.executed": "تم التنفيذ",
        "trigger.title": "أتمتة: {label}",
        "degree.1": "الأولى",
        "degree.2": "الثانية",
        "degree.3": "الثالثة",
        "degree.4": "الرابعة",
        "referral.title": "إحالة طالب للموجه الطلابي - {student}",
        "referral.region": "المنطقة/المحافظة",
        "referral.school": "المدرسة",
        "referral.confidential": "سري",
        "referral.heading": "إحالة طالب/ـة",
        "referral.date": "التاريخ",
        "referral.ref": "الرقم",
        "referral.greeting": "المكرم {counselor}",
        "referral.counselor": "الموجه الطلابي / الموجهة الطلابية",
        "referral.intro": "نحيل إليكم الطالب/ـة {student} من الصف {student_class}، لمخالفة سلوكية من الدرجة {degree} وهي {violation_type}، المرصودة بتاريخ {incident_date}.",
        "referral.request": "يرجى منكم متابعة الطالب/الطالبة ودراسة حالته/حالتها، ووضع الحلول التربوية والعلاجية المناسبة، وإفادتنا بالنتائج.",
        "referral.number": "رقم المخالفة",
        "referral.degree": "الدرجة",
        "referral.type": "نوع المخالفة",
        "referral.reporter": "المبلّغ",
        "referral.details": "وصف المخالفة",
        "referral.action": "سبب الإحالة",
        "referral.counselor.block": "الموجه الطلابي",
        "referral.vice_principal": "وكيل/وكيلة شؤون الطلبة",
        "referral.name": "الاسم",
        "referral.signature": "التوقيع",
        "referral.stamp": "الختم",
        "referral.footer": "هذه الوثيقة صادرة إلكترونياً من نظام المتابعة المدرسي",
        "invitation.title": "دعوة ولي أمر - {student}",
        "invitation.ministry": "وزارة التعليم",
        "invitation.region": "المنطقة",
        "invitation.heading": "خطاب دعوة ولي الأمر",
        "invitation.student": "اسم الطالب/ـة",
        "invitation.grade": "الصف",
        "invitation.class": "الشعبة",
        "invitation.date": "تاريخ الدعوة",
        "invitation.greeting": "المكرم ولي أمر الطالب/ـة {student}",
        "invitation.request": "نأمل منكم التكرم بزيارة المدرسة يوم {day} الموافق {gregorian} ({hijri}) الساعة {time}.",
        "invitation.purpose": "الغرض من الدعوة",
        "invitation.thanks": "شاكرين لكم حسن تعاونكم لما فيه مصلحة الطالب/ـة.",
        "invitation.principal": "مدير/ة المدرسة",
        "invitation.name": "الاسم",
        "invitation.signature": "التوقيع",
        "invitation.stamp": "الختم",
        "invitation.reply": "رد ولي الأمر",
        "invitation.attend": "أقر بالعلم، وسأحضر في الموعد المحدد.",
        "invitation.decline": "أعتذر عن الحضور لظروف خاصة.",
        "invitation.issued": "تاريخ الإصدار",
    },
}


def message(key: str, locale: str = DEFAULT_LOCALE, **params: object) -> str:
    """Look up a message, falling back to English and then to the key itself."""
    table = MESSAGES.get(locale) or MESSAGES[DEFAULT_LOCALE]
    text = table.get(key) or MESSAGES[DEFAULT_LOCALE].get(key, key)
    if params:
        return text.format(**params)
    return text


RTL_LOCALES = frozenset({"ar"})


def text_direction(locale: str) -> str:
    """HTML ``dir`` value for a locale."""
    return "rtl" if locale in RTL_LOCALES else "ltr"
