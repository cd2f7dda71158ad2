"""Currency formatting."""


def format_usd(cents: int | None) -> str:
    """
    Format an amount in cents as US dollars.

    Parameters
    ----------
    cents : int | None
        Amount in cents. None formats as zero.

    Returns
    -------
    str
        Formatted amount (e.g., '$1,234.50', '-$3.00')

    """
    cents = cents or 0
    sign = "-" if cents < 0 else ""
    dollars, rest = divmod(abs(cents), 100)
    return f"{sign}${dollars:,}.{rest:02d}"
