import pytest

from app.config.settings import Settings
from app.enrichment.factory import EnrichmentChainFactory


class TestEnrichmentChainFactory:
    def test_default_order(self) -> None:
        chain = EnrichmentChainFactory.create(Settings())
        assert chain.provider_names == ["linkedin_oauth", "people_data_labs", "placeholder"]

    def test_configured_order(self) -> None:
        settings = Settings(enrichment_providers=["people_data_labs"])
        chain = EnrichmentChainFactory.create(settings)
        assert chain.provider_names == ["people_data_labs", "placeholder"]

    def test_no_providers_leaves_placeholder(self) -> None:
        chain = EnrichmentChainFactory.create(Settings(enrichment_providers=[]))
        assert chain.provider_names == ["placeholder"]

    def test_unknown_provider_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown enrichment provider 'clearbit'"):
            EnrichmentChainFactory.create(Settings(enrichment_providers=["clearbit"]))
