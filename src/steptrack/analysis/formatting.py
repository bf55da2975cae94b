"""Display formatting for live tracking stats."""


def format_duration(seconds: int) -> str:
    """
    Format elapsed seconds as "m:ss", or "h:mm:ss" once past an hour.

    Examples:
        75    -> "1:15"
        3725  -> "1:02:05"
    """
    seconds = max(0, int(seconds))
    hrs = seconds // 3600
    mins = (seconds % 3600) // 60
    secs = seconds % 60
    if hrs > 0:
        return f"{hrs}:{mins:02d}:{secs:02d}"
    return f"{mins}:{secs:02d}"


def format_distance(meters: float) -> str:
    """Whole meters below 1 km ("850m"), kilometers with 2 decimals above ("1.23km")."""
    if meters < 1000:
        return f"{meters:.0f}m"
    return f"{meters / 1000:.2f}km"


def format_speed(kmh: float) -> str:
    return f"{kmh:.1f} km/h"


def format_pace(kmh: float) -> str:
    """
    Format a speed in km/h as a pace in minutes per kilometer.

    Args:
        kmh: speed in kilometers per hour

    Returns:
        String like "11:07 /km", or "--:--" when not moving.
    """
    if kmh <= 0:
        return "--:--"
    min_per_km = 60.0 / kmh
    mins = int(min_per_km)
    secs = round((min_per_km - mins) * 60)
    if secs == 60:
        mins += 1
        secs = 0
    return f"{mins}:{secs:02d} /km"
