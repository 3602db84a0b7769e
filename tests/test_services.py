from tripflow.config import DEFAULT_OPENAI_MODEL, Settings
from tripflow.llm.nlu import ItineraryPlanner, LLMIntentParser, TravelAdvisor
from tripflow.providers.amadeus_cabs import AmadeusCabsProvider
from tripflow.providers.amadeus_flights import AmadeusFlightsProvider
from tripflow.providers.amadeus_hotels import AmadeusHotelsProvider
from tripflow.providers.booking import HttpBookingProvider, SqlBookingProvider
from tripflow.providers.mock_cabs import MockCabsProvider
from tripflow.providers.mock_hotels import MockHotelsProvider
from tripflow.providers.mock_transport import MockBusesProvider, MockFlightsProvider, MockTrainsProvider
from tripflow.schemas import TravelMode
from tripflow.services import build_services


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.delenv("OPENAI_MODEL", raising=False)
    monkeypatch.setenv("AMADEUS_CLIENT_ID", "id")
    monkeypatch.delenv("AMADEUS_CLIENT_SECRET", raising=False)
    monkeypatch.setenv("BOOKING_TIMEOUT", "30")

    s = Settings.from_env()

    assert s.llm_enabled
    assert s.openai_model == DEFAULT_OPENAI_MODEL
    assert not s.amadeus_enabled
    assert s.booking_timeout == 30
    assert s.amadeus_hostname == "test"


def test_build_services_without_credentials_uses_mocks():
    svc = build_services(Settings())

    assert isinstance(svc.transport[TravelMode.FLIGHT], MockFlightsProvider)
    assert isinstance(svc.transport[TravelMode.TRAIN], MockTrainsProvider)
    assert isinstance(svc.transport[TravelMode.BUS], MockBusesProvider)
    assert isinstance(svc.hotels, MockHotelsProvider)
    assert isinstance(svc.cabs, MockCabsProvider)
    assert isinstance(svc.booking, SqlBookingProvider)
    assert svc.nlu is None and svc.advisor is None and svc.itinerary is None


def test_amadeus_providers_share_one_client_from_settings():
    svc = build_services(Settings(amadeus_client_id="id", amadeus_client_secret="secret"))

    flights = svc.transport[TravelMode.FLIGHT]
    assert isinstance(flights, AmadeusFlightsProvider)
    assert isinstance(svc.hotels, AmadeusHotelsProvider)
    assert isinstance(svc.cabs, AmadeusCabsProvider)
    assert flights.client is svc.hotels.client is svc.cabs.client
    # Amadeus has no rail or coach search
    assert isinstance(svc.transport[TravelMode.TRAIN], MockTrainsProvider)


def test_llm_parts_take_key_and_model_from_settings(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    svc = build_services(Settings(openai_api_key="sk-settings", openai_model="gpt-4o-mini",
                                  booking_api_url="http://bookings.local/api"))

    assert isinstance(svc.booking, HttpBookingProvider)
    assert isinstance(svc.nlu, LLMIntentParser)
    assert isinstance(svc.advisor, TravelAdvisor)
    assert isinstance(svc.itinerary, ItineraryPlanner)
    assert svc.nlu.llm.model_name == "gpt-4o-mini"
    assert svc.nlu.llm.openai_api_key.get_secret_value() == "sk-settings"
