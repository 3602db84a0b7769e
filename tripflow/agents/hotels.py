from tripflow.providers.base import HotelsProvider

def run_hotels_agent(provider: HotelsProvider, destination: str, budget: str, check_in: str, party_size: int) -> dict:
    hotels = provider.search(destination, budget, check_in, party_size)
    cheapest = hotels[0] if hotels else None
    return {"hotels": hotels, "cheapest": cheapest}
