"""User-facing strings and date labels for the profile page."""

from datetime import date

from biolink.core.config import get_settings
from biolink.schemas import Period

settings = get_settings()

PERIOD_LABELS = {
    Period.DAY: "Día",
    Period.WEEK: "Semana",
    Period.MONTH: "Mes",
    Period.ALL: "Todo",
}

STATS_TITLE = "Estadísticas de visitas"
TOTAL_CAPTION = "visitas totales"
STATS_ERROR_MESSAGE = "No se pudieron cargar las estadísticas"
PROFILE_ERROR_MESSAGE = "No se pudo cargar el perfil o no existe"

MONTH_ABBREVIATIONS = {
    "es": ("ene", "feb", "mar", "abr", "may", "jun", "jul", "ago", "sept", "oct", "nov", "dic"),
    "en": ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"),
}


def format_bucket_label(day: date, locale: str | None = None) -> str:
    """Abbreviated month and day, e.g. "1 ene" (es) or "Jan 1" (en).

    Unknown locales fall back to Spanish.
    """
    locale = (locale or settings.locale).split("-")[0].lower()
    months = MONTH_ABBREVIATIONS.get(locale, MONTH_ABBREVIATIONS["es"])
    month = months[day.month - 1]
    if locale == "en":
        return f"{month} {day.day}"
    return f"{day.day} {month}"
