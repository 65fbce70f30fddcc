"""CLI entry point: print today's fishing conditions and the catch log summary.

    uv run biteday-today
"""

import asyncio
import logging

from dotenv import load_dotenv

from biteday.config import Settings
from biteday.session import Session, create_session


def summarize(session: Session) -> str:
    score = session.score
    lines = [
        f"{session.weather_icon} {session.weather_condition}"
        + (
            f"  {session.temperature}°C  humidity {session.humidity}%"
            f"  wind {session.wind_speed:.1f} km/h"
            if session.has_weather
            else ""
        ),
        f"{session.moon_phase_icon} {session.moon_phase_name}"
        f"  ({session.moon_illumination:.0%} lit)",
        f"Fishing index: {score.total} ({score.label})"
        f"  [moon {score.phase} + weather {score.weather} + wind {score.wind}]",
        f"Catches: {session.count}, total {session.total_weight:.2f} kg",
    ]
    for record in session.records[:5]:
        lines.append(
            f"  {record.timestamp.isoformat()}  {record.species} @ {record.location}"
            f"  {record.weight:.2f} kg"
        )
    if session.error:
        lines.append(f"Error: {session.error}")
    return "\n".join(lines)


async def _run(settings: Settings) -> str:
    session = create_session(settings)
    await session.initialize()
    await session.settle()
    return summarize(session)


def main() -> None:
    load_dotenv()
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    print(asyncio.run(_run(settings)))


if __name__ == "__main__":
    main()
