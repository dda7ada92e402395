"""Example usage of LineTracker."""

import logging
import sys
from pathlib import Path

# Add src to path so we can import rayda
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rayda.arrivals import confidence_level, format_minutes_away
from rayda.journey import journey_summary
from rayda.naming import abbreviate_station
from rayda.tracker import LineTracker

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def print_station_data(tracker: LineTracker, station_input: str):
    """
    Display predicted arrivals for a station.

    Args:
        station_input: Station name or ID (e.g., "Sirkeci" or "65")
    """
    print(f"\n{'='*70}")
    print(f"Arrivals for: {station_input}")
    print(f"{'='*70}\n")

    station_data = tracker.get_station_data(station_input)
    print(f"Station: {station_data.station.name} (ID: {station_data.station.id})")
    print(f"Updated: {station_data.last_updated.strftime('%H:%M:%S')}\n")

    if station_data.arrivals:
        for arrival in station_data.arrivals:
            print(
                f"  {arrival.display_name:>4} {arrival.route_name:<16} "
                f"{format_minutes_away(arrival.minutes_away):>7} → {abbreviate_station(arrival.final_destination_name)} "
                f"[{confidence_level(arrival.confidence)}]"
            )
    else:
        print("  No upcoming arrivals")


def print_trains(tracker: LineTracker):
    """List every train on the line."""
    for position in tracker.snapshot.positions:
        print(f"  {tracker.train_name(position):<24} {tracker.describe_train(position)}")


def print_stations(tracker: LineTracker):
    """List stations in line order, grouped by section."""
    for section, stations in tracker.stations_by_section():
        print(f"\n{section}")
        for station in stations:
            print(f"  {abbreviate_station(station.name)}  {station.name} ({station.id})")


def interactive_mode(tracker: LineTracker):
    """
    Query stations or journeys until the user quits.

    Enter a station name for arrivals, "A > B" for a journey, "trains" for
    every train on the line or "stations" for the station list.
    """
    print("Rayda - Interactive Mode")
    print("Enter a station name for arrivals, or 'From > To' to plan a journey")
    print("'trains' lists the trains on the line, 'stations' lists the stations")
    print("(Type 'quit' to exit)\n")

    while True:
        try:
            user_input = input("Query (or 'quit'): ").strip()

            if user_input.lower() in ["quit", "q", "exit"]:
                print("Goodbye!")
                break

            if not user_input:
                continue

            tracker.update()
            try:
                if user_input.lower() == "trains":
                    print_trains(tracker)
                elif user_input.lower() == "stations":
                    print_stations(tracker)
                elif ">" in user_input:
                    origin, destination = (part.strip() for part in user_input.split(">", 1))
                    from_station = tracker.get_station(origin)
                    to_station = tracker.get_station(destination)
                    plan = tracker.plan_journey(from_station.id, to_station.id)
                    if plan is None:
                        print("No route found")
                    else:
                        print(f"\n{from_station.name} → {to_station.name}: {journey_summary(plan)}")
                        print(
                            f"  {tracker.station_section(from_station.id)} → "
                            f"{tracker.station_section(to_station.id)}"
                        )
                else:
                    print_station_data(tracker, user_input)

            except ValueError as e:
                print(f"Station not found: {e}")
                matching = tracker.find_stations_by_name(user_input.split(">")[0].strip())
                if matching:
                    print("\nDid you mean:")
                    for station in matching[:5]:
                        print(f"  - {station.name} ({station.id})")

        except KeyboardInterrupt:
            print("\n\nGoodbye!")
            break
        except Exception as e:
            logger.error(f"Error: {e}", exc_info=True)
            print(f"Error: {e}")


if __name__ == "__main__":
    track_file = Path(__file__).parent.parent / "data" / "marmaray-track-geometry.json"
    tracker = LineTracker(track_path=str(track_file) if track_file.exists() else None)
    snapshot = tracker.update()
    print(f"{len(snapshot.positions)} trains on the line. {tracker.service_status()}")

    if len(sys.argv) > 1:
        # Command line mode: pass station name as argument
        print_station_data(tracker, " ".join(sys.argv[1:]))
    else:
        interactive_mode(tracker)
