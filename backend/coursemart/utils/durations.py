def humanize_minutes(minutes: int) -> str:
    """
    Render a lecture-time total in hours and minutes.

    >>> humanize_minutes(65)
    '1 hour, 5 minutes'
    >>> humanize_minutes(120)
    '2 hours'
    >>> humanize_minutes(0)
    '0 minutes'
    """
    minutes = int(round(minutes))
    hours, rest = divmod(minutes, 60)

    parts = []
    if hours:
        parts.append(f"{hours} hour" + ("" if hours == 1 else "s"))
    if rest or not hours:
        parts.append(f"{rest} minute" + ("" if rest == 1 else "s"))
    return ", ".join(parts)
