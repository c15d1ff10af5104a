"""Text formatting helpers for CLI output and recommendation text."""

# Upper bounds (exclusive) for each APR label, checked in order.
APR_LABELS = (
    (3.0, "Excellent"),
    (5.0, "Good"),
    (8.0, "Moderate"),
    (12.0, "High"),
)


def apr_label(apr: float) -> str:
    for bound, label in APR_LABELS:
        if apr < bound:
            return label
    return "Very High"


def format_usd(value: float) -> str:
    """Format a dollar amount with thousands separators: ``$1,234.50``."""
    return f"${value:,.2f}"


def format_percent(ratio: float, digits: int = 1) -> str:
    """Format a 0-1 ratio as a percentage: ``0.05`` -> ``5.0%``."""
    return f"{ratio * 100:.{digits}f}%"
