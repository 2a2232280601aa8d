from __future__ import annotations

import pytest

from faithsearch.models.catalog import Category, RetrievalCatalog

MIRRORS = (
    "https://mirror-one.example/",
    "https://mirror-two.example/",
    "https://mirror-three.example/",
)


@pytest.fixture
def catalog() -> RetrievalCatalog:
    return RetrievalCatalog(
        categories=(
            Category("judaism", "JUDAISM", ("sefaria.org", "chabad.org")),
            Category("christianity", "CHRISTIANITY", ("biblegateway.com",)),
            Category("islam", "ISLAM", ("islamqa.info", "sunnah.com")),
            Category("hinduism", "HINDUISM", ("hinduwebsite.com",)),
            Category("sikhism", "SIKHISM", ("sikhiwiki.org",)),
            Category("buddhism", "BUDDHISM", ("accesstoinsight.org",)),
        ),
        mirrors=MIRRORS,
    )
