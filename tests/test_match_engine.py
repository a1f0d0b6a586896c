import asyncio
import json

import pytest

from app.domain.errors import ConfigurationError, OracleCallFailure
from app.models.oracle import OracleConfig
from app.services.match_engine import MatchEngine
from app.services.oracle_client import OracleClient


def _engine(provider, stub_normalizer, max_candidates=20):
    client = OracleClient(OracleConfig(provider="fake"), provider=provider)
    return MatchEngine(client, max_candidates=max_candidates, normalizer_factory=lambda: stub_normalizer)


def _reply(*entries):
    return json.dumps({"matches": [{"id": i, "confidence": c, "reasoning": f"reason {i}"} for i, c in entries]})


def test_end_to_end_ranking(make_found, make_lost, fake_provider, stub_normalizer):
    provider = fake_provider(reply=_reply(("lost-2", 40), ("lost-99", 99), ("lost-1", 92)))
    lost = [make_lost("lost-1", "Jansport Backpack"), make_lost("lost-2", "Hydro-Flask Bottle")]
    ranked = asyncio.run(_engine(provider, stub_normalizer).find_matches(make_found(), lost))

    assert [(m.id, m.confidence, m.band) for m in ranked] == [("lost-1", 92.0, "high"), ("lost-2", 40.0, "low")]
    assert len(provider.calls) == 1


def test_only_unknown_id_gives_empty_result(make_found, make_lost, fake_provider, stub_normalizer):
    provider = fake_provider(reply=_reply(("lost-99", 88)))
    ranked = asyncio.run(_engine(provider, stub_normalizer).find_matches(make_found(), [make_lost("lost-1")]))
    assert ranked == []


def test_empty_universe_skips_oracle(make_found, fake_provider, stub_normalizer):
    provider = fake_provider(reply=_reply(("lost-1", 90)))
    ranked = asyncio.run(_engine(provider, stub_normalizer).find_matches(make_found(), []))
    assert ranked == []
    assert provider.calls == []
    assert stub_normalizer.calls == []


def test_configuration_error_raised_before_any_work(make_found, make_lost, stub_normalizer):
    client = OracleClient(OracleConfig(provider="openai", api_key=None))
    engine = MatchEngine(client, normalizer_factory=lambda: stub_normalizer)
    with pytest.raises(ConfigurationError):
        asyncio.run(engine.find_matches(make_found(), [make_lost("lost-1")]))
    with pytest.raises(ConfigurationError):
        asyncio.run(engine.find_matches(make_found(), []))
    assert stub_normalizer.calls == []


def test_candidates_beyond_cap_never_ranked(make_found, make_lost, fake_provider, stub_normalizer):
    lost = [make_lost(f"lost-{i}") for i in range(25)]
    provider = fake_provider(reply=_reply(("lost-24", 99), ("lost-3", 70)))
    ranked = asyncio.run(_engine(provider, stub_normalizer, max_candidates=20).find_matches(make_found(), lost))
    assert [m.id for m in ranked] == ["lost-3"]
    sent_text = "\n".join(p.text for p in provider.calls[0]["parts"] if hasattr(p, "text"))
    assert "Candidate ID: lost-24 ---" not in sent_text


def test_malformed_oracle_output_is_zero_matches(make_found, make_lost, fake_provider, stub_normalizer):
    provider = fake_provider(reply="Sorry, I cannot help with that.")
    ranked = asyncio.run(_engine(provider, stub_normalizer).find_matches(make_found(), [make_lost("lost-1")]))
    assert ranked == []


def test_bad_images_do_not_block_comparison(make_found, make_lost, fake_provider, stub_normalizer):
    provider = fake_provider(reply=_reply(("lost-1", 85)))
    found = make_found(image="bad://found")
    lost = [make_lost("lost-1", image="bad://lost")]
    ranked = asyncio.run(_engine(provider, stub_normalizer).find_matches(found, lost))
    assert [m.id for m in ranked] == ["lost-1"]


def test_oracle_failure_propagates(make_found, make_lost, fake_provider, stub_normalizer):
    provider = fake_provider(error=TimeoutError("read timed out"))
    with pytest.raises(OracleCallFailure):
        asyncio.run(_engine(provider, stub_normalizer).find_matches(make_found(), [make_lost("lost-1")]))
