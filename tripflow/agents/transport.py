from tripflow.providers.base import TransportProvider

def run_transport_agent(provider: TransportProvider, origin: str, destination: str, date: str, passengers: int = 1) -> dict:
    offers = provider.search(origin, destination, date, passengers)
    cheapest = offers[0] if offers else None
    return {"offers": offers, "cheapest": cheapest}
