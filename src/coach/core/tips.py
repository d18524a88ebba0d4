"""Daily coaching tips."""

from datetime import date

TIPS = [
    "Take a short walk today to refresh your mind and body.",
    "Write down three things you're grateful for.",
    "Spend five minutes practising deep breathing.",
    "Reach out to someone you appreciate and tell them why.",
    "Set a small, achievable goal for the next hour.",
    "Declutter a tiny area of your workspace.",
    "Drink a full glass of water and stretch your shoulders.",
]


def daily_tip(as_of: date | None = None) -> str:
    """Tip of the day, rotating by day of month."""
    as_of = as_of or date.today()
    return TIPS[as_of.day % len(TIPS)]


def reflection_messages(feeling: str | None = None) -> list[tuple[str, str]]:
    """(role, text) pairs that open a daily reflection conversation."""
    opener = (
        f"I'm feeling {feeling} today and would like to reflect on my day."
        if feeling
        else "I would like to reflect on my day."
    )
    return [
        ("assistant", "You are an encouraging life coach who helps the user reflect constructively."),
        ("user", opener),
    ]
