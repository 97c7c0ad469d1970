"""
Print the Cal.com event types available to CAL_API_KEY.

Any listed id can be used as "calendarId" in /check-availability requests.
"""

import sys

from cal_availability.clients.cal_client import CalComClient
from cal_availability.config import settings
from cal_availability.exceptions import SlotSourceError


def main() -> int:
    if not settings.CAL_API_KEY:
        print("CAL_API_KEY not found in environment or .env")
        return 1

    try:
        event_types = CalComClient().get_event_types()
    except SlotSourceError as e:
        print(f"Error: {e}")
        return 1

    if not event_types:
        print("No event types found. Create one at https://app.cal.com/event-types")
        return 0

    print(f"Found {len(event_types)} event type(s):\n")
    for index, event_type in enumerate(event_types, start=1):
        print(f'{index}. "{event_type["title"]}"')
        print(f"   ID: {event_type['id']}")
        print(f"   Slug: {event_type['slug']}")
        print(f"   Duration: {event_type['length']} minutes")
        print(f"   Hidden: {'Yes' if event_type['hidden'] else 'No'}")
        print("")

    print('Use any of these IDs as "calendarId" in your API requests')
    return 0


if __name__ == "__main__":
    sys.exit(main())
