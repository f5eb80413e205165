"""Reminder and alert formatter for Telegram messages."""

import random
from datetime import date

from hilal.domain.enums import MessageType, Notice
from hilal.domain.models import CountdownResult, PrayerTimes

_REMINDERS = {
    "ar": {
        MessageType.IFTAR: ("✨", "صحا فطوركم", "تقبل الله منا ومنكم صيامنا وقيامنا"),
        MessageType.SUHOOR: ("🌙", "صحا سحوركم", "لا تنسوا النية والدعاء"),
        MessageType.EARLY_SUHOOR: (
            "🍲",
            "تذكير بالسحور",
            "ساعة قبل الإمساك - اغتنموا وقت السحر بالاستغفار والدعاء",
        ),
        MessageType.TARAWEEH: (
            "🕌",
            "صلاة العشاء والتراويح",
            "حان وقت الاستعداد لصلاة العشاء والتراويح. تقبل الله قيامكم",
        ),
    },
    "en": {
        MessageType.IFTAR: ("✨", "Enjoy your iftar", "May Allah accept our fasting and prayers"),
        MessageType.SUHOOR: ("🌙", "Time for suhoor", "Do not forget your intention and supplication"),
        MessageType.EARLY_SUHOOR: (
            "🍲",
            "Suhoor reminder",
            "One hour before imsak - make the most of the pre-dawn hour",
        ),
        MessageType.TARAWEEH: (
            "🕌",
            "Isha and Taraweeh",
            "Time to get ready for Isha and Taraweeh prayers",
        ),
    },
}

_DUAS = {
    MessageType.IFTAR: "<i>اللهم لك صمت وعلى رزقك أفطرت</i>",
    MessageType.SUHOOR: "<i>وبالأسحار هم يستغفرون</i>",
    MessageType.EARLY_SUHOOR: "🤲 <i>اللهم إني أسألك خير هذه الساعة وخير ما فيها</i>",
    MessageType.TARAWEEH: "📿 <i>مَنْ قَامَ رَمَضَانَ إِيمَانًا وَاحْتِسَابًا غُفِرَ لَهُ مَا تَقَدَّمَ مِنْ ذَنْبِهِ</i>",
}

_NOTICES = {
    "ar": {
        Notice.SEASON_STARTED: ("🎉", "رمضان مبارك!", "تم تفعيل رسائل رمضان. تقبل الله منا ومنكم"),
        Notice.SEASON_ENDED: ("🌟", "عيد مبارك!", "تم إيقاف رسائل رمضان. كل عام وأنتم بخير"),
        Notice.NIGHT_OF_DOUBT: ("🔍", "ليلة الشك", "ننتظر ثبوت رؤية هلال رمضان المبارك"),
    },
    "en": {
        Notice.SEASON_STARTED: ("🎉", "Ramadan Mubarak!", "Ramadan reminders are now active"),
        Notice.SEASON_ENDED: ("🌟", "Eid Mubarak!", "Ramadan reminders have been stopped"),
        Notice.NIGHT_OF_DOUBT: ("🔍", "Night of doubt", "Waiting for the crescent sighting announcement"),
    },
}

_LABELS = {
    "ar": {
        "city": "🕌 المدينة",
        "time": "⏰ الوقت",
        "date": "📅 التاريخ",
        "days": "⏳ الأيام المتبقية",
        "day_unit": "يوم",
        "expected": "📆 الموعد المتوقع",
        "approximate": "⚠️ التاريخ تقريبي",
        "schedule": "📅 إمساكية اليوم",
    },
    "en": {
        "city": "🕌 City",
        "time": "⏰ Time",
        "date": "📅 Date",
        "days": "⏳ Days remaining",
        "day_unit": "days",
        "expected": "📆 Expected",
        "approximate": "⚠️ Approximate date",
        "schedule": "📅 Today's schedule",
    },
}

_PRAYER_LABELS = {
    "ar": {
        "Fajr": "الفجر",
        "Sunrise": "الشروق",
        "Dhuhr": "الظهر",
        "Asr": "العصر",
        "Maghrib": "المغرب",
        "Isha": "العشاء",
    },
    "en": {name: name for name in ("Fajr", "Sunrise", "Dhuhr", "Asr", "Maghrib", "Isha")},
}

_COUNTDOWN_FOOTERS = (
    "💫 اللهم بلغنا رمضان",
    "🤲 اللهم أهلّه علينا بالأمن والإيمان",
    "✨ استعدوا لشهر الخير والبركة",
    "📿 اللهم سلمنا لرمضان وسلم رمضان لنا",
)


def _lang(language: str) -> str:
    return language if language in _LABELS else "en"


def _escape_html(text: str) -> str:
    """Escape HTML special characters for Telegram."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def format_reminder(
    message_type: MessageType,
    city: str,
    prayer_time: str,
    hijri_date: str,
    language: str = "ar",
) -> str:
    """Format a daily reminder.

    Args:
        message_type: Reminder kind (not ``IFTAR_IMAGE``).
        city: Channel city.
        prayer_time: Prayer time the reminder refers to (``HH:MM``).
        hijri_date: Formatted Hijri date.
        language: Message language (ar or en).

    Returns:
        Formatted HTML string for Telegram

    """
    lang = _lang(language)
    emoji, title, body = _REMINDERS[lang][message_type]
    labels = _LABELS[lang]

    lines = [
        f"{emoji} <b>{title}</b> {emoji}",
        "",
        f"<b>{body}</b>",
    ]
    if dua := _DUAS.get(message_type):
        lines += ["", dua]
    lines += [
        "",
        f"<b>{labels['city']}:</b> {_escape_html(city)}",
        f"<b>{labels['time']}:</b> <code>{prayer_time}</code>",
        f"<b>{labels['date']}:</b> {hijri_date}",
    ]
    return "\n".join(lines)


def format_notice(
    notice: Notice,
    hijri_date: str,
    city: str | None = None,
    language: str = "ar",
) -> str:
    """Format a season announcement (start, end, night of doubt)."""
    lang = _lang(language)
    emoji, title, body = _NOTICES[lang][notice]
    labels = _LABELS[lang]

    lines = [f"{emoji} <b>{title}</b> {emoji}", "", f"<b>{body}</b>", ""]
    if city:
        lines.append(f"<b>{labels['city']}:</b> {_escape_html(city)}")
    lines.append(f"<b>{labels['date']}:</b> {hijri_date}")
    return "\n".join(lines)


def format_countdown(
    countdown: CountdownResult,
    hijri_date: str,
    language: str = "ar",
) -> str:
    """Format the evening countdown alert.

    Args:
        countdown: Reconciled countdown.
        hijri_date: Formatted Hijri date.
        language: Message language (ar or en).

    Returns:
        Formatted HTML string for Telegram

    """
    lang = _lang(language)
    labels = _LABELS[lang]
    days = countdown.days_remaining

    title = "🌙 <b>العد التنازلي لرمضان المبارك</b>" if lang == "ar" else "🌙 <b>Ramadan countdown</b>"
    lines = [
        title,
        "",
        f"<b>{labels['days']}:</b> <b>[ {days} ]</b> {labels['day_unit']}",
        f"<b>{labels['date']}:</b> {hijri_date}",
    ]
    if countdown.expected_date:
        lines.append(f"<b>{labels['expected']}:</b> {countdown.expected_date.isoformat()}")

    lines += ["", f"<i>{random.choice(_COUNTDOWN_FOOTERS)} | {labels['approximate']}</i>"]  # noqa: S311
    return "\n".join(lines)


def format_daily_schedule(
    city: str,
    prayer_times: PrayerTimes,
    hijri_date: str,
    day: date,
    language: str = "ar",
) -> str:
    """Format the early-morning prayer schedule for one city."""
    lang = _lang(language)
    labels = _LABELS[lang]
    names = _PRAYER_LABELS[lang]

    lines = [
        f"<b>{labels['schedule']} - {_escape_html(city)}</b>",
        f"{hijri_date} · {day.isoformat()}",
        "",
    ]
    for name, value in prayer_times.as_timings().items():
        lines.append(f"{names[name]}: <code>{value}</code>")
    return "\n".join(lines)


def format_status(
    active: bool,
    countdown_enabled: bool,
    channels: list[tuple[str, str]],
    jobs_count: int,
    countdown: CountdownResult | None = None,
    language: str = "ar",
) -> str:
    """Format bot status message.

    Args:
        active: Whether the season is running.
        countdown_enabled: Whether the evening countdown is on.
        channels: (channel id, city) of every configured channel.
        jobs_count: Number of installed reminder jobs.
        countdown: Current countdown, when known.
        language: Message language.

    Returns:
        Formatted HTML string

    """
    if language == "ar":
        lines = [
            "📊 <b>حالة البوت</b>",
            "",
            f"{'✅ مفعّل' if active else '⏸️ غير مفعّل'}",
            f"⏳ العد التنازلي: {'مفعّل' if countdown_enabled else 'متوقف'}",
            f"⏰ التذكيرات المجدولة: {jobs_count}",
        ]
        if countdown is not None and countdown.days_remaining >= 0:
            lines.append(f"🌙 الأيام المتبقية: {countdown.days_remaining}")
    else:
        lines = [
            "📊 <b>Bot Status</b>",
            "",
            f"{'✅ Active' if active else '⏸️ Inactive'}",
            f"⏳ Countdown: {'on' if countdown_enabled else 'off'}",
            f"⏰ Scheduled reminders: {jobs_count}",
        ]
        if countdown is not None and countdown.days_remaining >= 0:
            lines.append(f"🌙 Days remaining: {countdown.days_remaining}")

    for channel_id, city in channels:
        lines.append(f"📍 <code>{_escape_html(channel_id)}</code> · {_escape_html(city)}")

    return "\n".join(lines)
