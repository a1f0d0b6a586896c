import pytest

from app.domain.errors import MalformedPayload
from app.models.items import FoundItemReport, LostItemReport, Profile
from app.services.image_normalizer import parse_data_url
from app.services.oracle_providers import BaseOracleProvider

# 1x1 transparent PNG
PNG_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
PNG_DATA_URL = f"data:image/png;base64,{PNG_B64}"


@pytest.fixture
def png_data_url():
    return PNG_DATA_URL


@pytest.fixture
def make_lost():
    def _make(item_id, name="Backpack", image=PNG_DATA_URL, **kw):
        return LostItemReport(
            id=item_id,
            profile=Profile(full_name=kw.pop("owner", "Jane Doe"), section_year="BSCS 4-B", contact_number="09123456789"),
            item_name=name,
            date_lost=kw.pop("date_lost", "2023-10-26"),
            last_known_location=kw.pop("location", "University Library"),
            description=kw.pop("description", f"{name} description"),
            image=image,
        )
    return _make


@pytest.fixture
def make_found():
    def _make(item_id="found-1", name="Backpack", image=PNG_DATA_URL):
        return FoundItemReport(
            id=item_id,
            item_name=name,
            image=image,
            description="A black backpack with a NASA patch.",
            location_found="Library",
            date_found="2023-10-26",
        )
    return _make


class StubNormalizer:
    """Offline normalizer: data URLs parse normally, 'bad://' refs fail."""

    def __init__(self):
        self.calls = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def normalize(self, image_ref):
        self.calls.append(image_ref)
        if image_ref.startswith("bad://"):
            raise MalformedPayload(image_ref, "stub failure")
        return parse_data_url(image_ref)


@pytest.fixture
def stub_normalizer():
    return StubNormalizer()


class FakeProvider(BaseOracleProvider):
    name = "fake"
    requires_credential = False

    def __init__(self, reply='{"matches": []}', error=None):
        self.model = "fake-model"
        self.reply = reply
        self.error = error
        self.calls = []

    def compare(self, parts, response_schema, timeout):
        self.calls.append({"parts": list(parts), "schema": response_schema, "timeout": timeout})
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def fake_provider():
    return FakeProvider
