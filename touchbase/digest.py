from jinja2 import Template

from .dates import format_month_day
from .due import DueKind

# =========================
# Digest templates (plain text)
# =========================
DIGEST_TMPL = Template("""Hi {{ name or 'there' }},

{% if overdue -%}
Overdue ({{ overdue|length }}):
{% for line in overdue %}  - {{ line }}
{% endfor %}
{% endif -%}
{% if coming_up -%}
Coming up ({{ coming_up|length }}):
{% for line in coming_up %}  - {{ line }}
{% endfor %}
{% endif -%}
Log a touchpoint: {{ app_url }}
""")

FOOTER_TXT = Template("""--
{{ from_name }} | daily reminder for {{ today }}
Turn these off in settings: {{ app_url }}/settings
""")


def _plural(n: int, word: str = "day") -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"


def describe(item) -> str:
    """One digest line, e.g. "Ana: overdue by 5 days (last contact 35 days ago)"."""
    c, s = item.contact, item.status
    if s.days_overdue is not None:
        due = f"overdue by {_plural(s.days_overdue)}"
    elif s.days_until_due == 0:
        due = "due today"
    else:
        due = f"due in {_plural(s.days_until_due)}"

    if s.never_contacted:
        last = "never contacted"
    else:
        last = f"last contact {_plural(s.days_since_last_contact)} ago"

    extra = " [pinned]" if s.override == "pinned" else ""
    if s.days_until_birthday is not None and s.days_until_birthday <= 7:
        when = "today" if s.days_until_birthday == 0 else f"in {_plural(s.days_until_birthday)}"
        extra += f" [birthday {format_month_day(*c.birthday)}, {when}]"
    return f"{c.name}: {due} ({last}){extra}"


def build_subject(overdue: int, coming_up: int) -> str:
    if overdue and coming_up:
        return f"{_plural(overdue, 'contact')} overdue, {coming_up} coming up"
    if overdue:
        return f"{_plural(overdue, 'contact')} overdue"
    return f"{_plural(coming_up, 'contact')} coming up"


def build_digest(items, ctx: dict):
    """
    Returns (subject, body), or None when nobody is overdue or coming up.
    ctx expects: name, from_name, app_url, today
    """
    overdue = [describe(i) for i in items if i.status.kind is DueKind.OVERDUE]
    coming_up = [describe(i) for i in items if i.status.kind is DueKind.COMING_UP]
    if not overdue and not coming_up:
        return None
    body = DIGEST_TMPL.render(overdue=overdue, coming_up=coming_up, **ctx)
    body = body.rstrip() + "\n\n" + FOOTER_TXT.render(**ctx)
    return build_subject(len(overdue), len(coming_up)), body
