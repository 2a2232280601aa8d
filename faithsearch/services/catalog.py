"""Built-in category table, domain allow-lists and the SearXNG mirror pool."""
from __future__ import annotations

from functools import lru_cache

from faithsearch.config import Settings, settings
from faithsearch.models.catalog import Category, RetrievalCatalog

CATEGORY_LABELS: dict[str, str] = {
    "judaism": "JUDAISM",
    "christianity": "CHRISTIANITY",
    "islam": "ISLAM",
    "hinduism": "HINDUISM",
    "sikhism": "SIKHISM",
    "buddhism": "BUDDHISM",
    "philosophy": "PHILOSOPHY",
}

# Curated authoritative sites per tradition.
CATEGORY_DOMAINS: dict[str, tuple[str, ...]] = {
    "judaism": (
        "sefaria.org",
        "chabad.org",
        "myjewishlearning.com",
        "askmoses.com",
        "dinonline.org",
        "jewishvirtuallibrary.com",
        "rabanan.org",
        "airish.org",
    ),
    "christianity": (
        "biblegateway.com",
        "christianity.com",
        "gotquestions.org",
        "catholic.com",
        "orthodoxwiki.org",
    ),
    "islam": (
        "quran.com",
        "islamqa.info",
        "islamweb.net",
        "al-islam.org",
        "sunnah.com",
    ),
    "hinduism": (
        "vedabase.io",
        "hinduwebsite.com",
        "bhagavad-gita.org",
        "vedanta.org",
        "hinduismtoday.com",
    ),
    "sikhism": (
        "sikhnet.com",
        "sikhs.org",
        "searchgurbani.com",
        "srigranth.org",
        "sikhiwiki.org",
    ),
    "buddhism": (
        "accesstoinsight.org",
        "dhammatalks.org",
        "buddhanet.net",
        "tricycle.org",
        "suttacentral.net",
    ),
    "philosophy": (
        "plato.stanford.edu",
        "iep.utm.edu",
        "philosophynow.org",
    ),
}

# Ordered by preference.
SEARX_MIRRORS: tuple[str, ...] = (
    "https://priv.au/",
    "https://searx.tiekoetter.com/",
    "https://searxng.hweeren.com/",
    "https://searxng.f24o.zip/",
    "https://search.mdosch.de/",
    "https://www.gruble.de/",
    "https://search.leptons.xyz/",
    "https://search.rowie.at/",
    "https://find.xenorio.xyz/",
    "https://search.nordh.tech/",
    "https://search.im-in.space/",
    "https://search.canine.tools/",
    "https://searx.tuxcloud.net/",
    "https://searxng.deliberate.world/",
    "https://search.080609.xyz/",
    "https://baresearch.org/",
    "https://searx.perennialte.ch/",
    "https://search.ononoki.org/",
    "https://searx.namejeff.xyz/",
    "https://searx.stream/",
    "https://searx.lunar.icu/",
    "https://search.privacyredirect.com/",
    "https://search.sapti.me/",
    "https://searxng.biz/",
    "https://search.einfachzocken.eu/",
    "https://search.inetol.net/",
    "https://search.hbubli.cc/",
    "https://search.rhscz.eu/",
    "https://searx.rhscz.eu/",
    "https://searx.dresden.network/",
    "https://searx.foobar.vip/",
    "https://opnxng.com/",
    "https://searxng.site/",
    "https://search.citw.lgbt/",
    "https://kantan.cat/",
    "https://searx.ppeb.me/",
    "https://searxng.shreven.org/",
    "https://searx.ro/",
    "https://searxng.website/",
    "https://copp.gg/",
    "https://paulgo.io/",
    "https://searx.sev.monster/",
    "https://search.federicociro.com/",
    "https://northboot.xyz/",
    "https://searx.party/",
    "https://searx.juancord.xyz/",
    "https://searx.foss.family/",
    "https://darmarit.org/searx/",
    "https://search.nerdvpn.de/",
    "https://fairsuch.net/",
    "https://search.url4irl.com/",
    "https://searx.mxchange.org/",
    "https://s.mble.dk/",
    "https://ooglester.com/",
    "https://metacat.online/",
    "https://searx.thefloatinglab.world/",
    "https://searx.oloke.xyz/",
    "https://search.oh64.moe/",
    "https://searx.mbuf.net/",
    "https://etsi.me/",
    "https://sx.catgirl.cloud/",
    "https://searx.ox2.fr/",
    "https://s.datuan.dev/",
    "https://searx.ankha.ac/",
    "https://nyc1.sx.ggtyler.dev/",
    "https://searx.zhenyapav.com/",
    "https://search.indst.eu/",
    "https://seek.fyi/",
    "https://search.goober.cloud/",
    "https://search.ohaa.xyz/",
    "https://search.librenode.com/",
)


def build_catalog(config: Settings) -> RetrievalCatalog:
    """Build the retrieval catalog from the built-in tables and settings overrides."""
    enabled = config.enabled_category_list
    unknown = [key for key in enabled if key not in CATEGORY_LABELS]
    if unknown:
        raise ValueError(f"Unknown categories in ENABLED_CATEGORIES: {', '.join(unknown)}")

    keys = [key for key in CATEGORY_LABELS if not enabled or key in enabled]
    categories = tuple(
        Category(key=key, label=CATEGORY_LABELS[key], domains=CATEGORY_DOMAINS.get(key, ()))
        for key in keys
    )
    mirrors = tuple(config.searx_mirror_list) or SEARX_MIRRORS
    return RetrievalCatalog(categories=categories, mirrors=mirrors)


@lru_cache(maxsize=1)
def get_catalog() -> RetrievalCatalog:
    return build_catalog(settings)
