from models import EvidenceItem
from url_utils import canonicalize_url, extract_competitor_domains, extract_domain, is_first_party, is_http_url


def test_extract_domain_variants():
    assert extract_domain("https://www.Acme.com/pricing") == "acme.com"
    assert extract_domain("acme.com/docs") == "acme.com"
    assert extract_domain("") == ""
    assert extract_domain(None) == ""


def test_canonicalize_strips_tracking_and_trailing_slash():
    url = "https://www.acme.com/pricing/?utm_source=newsletter&plan=pro&gclid=abc"
    assert canonicalize_url(url) == "https://acme.com/pricing?plan=pro"
    assert canonicalize_url("not a url") == "not a url"


def test_is_http_url():
    assert is_http_url("https://acme.com")
    assert is_http_url("http://acme.com/x")
    assert not is_http_url("ftp://acme.com")
    assert not is_http_url("acme.com")
    assert not is_http_url(None)


def test_company_counts_only_when_domain_shaped():
    assert extract_competitor_domains("https://acme.com", "Acme Inc") == ["acme.com"]
    assert extract_competitor_domains("https://acme.com", "acme.io") == ["acme.com", "acme.io"]
    assert extract_competitor_domains(None, None) == []


def test_first_party_matches_subdomains_only():
    domains = ["acme.com"]
    assert is_first_party(EvidenceItem(id="1", url="https://docs.acme.com/start"), domains)
    assert is_first_party(EvidenceItem(id="2", url="https://x.io", domain="www.acme.com"), domains)
    assert not is_first_party(EvidenceItem(id="3", url="https://notacme.com/pricing"), domains)
    assert not is_first_party(EvidenceItem(id="4", url=""), domains)
