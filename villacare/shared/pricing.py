"""Service catalog - every cleaner offers the same services priced from their hourly rate"""

SERVICES = [
    {
        "type": "regular",
        "name": "Regular Clean",
        "description": "Standard cleaning service for maintained homes",
        "hours": 3,
    },
    {
        "type": "deep",
        "name": "Deep Clean",
        "description": "Thorough deep cleaning including hard-to-reach areas",
        "hours": 5,
    },
    {
        "type": "arrival",
        "name": "Arrival Prep",
        "description": "Get your villa ready before you arrive",
        "hours": 4,
    },
]

SERVICE_HOURS = {service["type"]: service["hours"] for service in SERVICES}


def service_quote(hourly_rate: float, service_type: str) -> tuple[float, float]:
    """(price, hours) for a service type; raises KeyError for unknown types"""
    hours = SERVICE_HOURS[service_type]
    return round(hourly_rate * hours, 2), hours


def priced_services(hourly_rate: float) -> list[dict]:
    return [{**service, "price": round(hourly_rate * service["hours"], 2)} for service in SERVICES]
