import pytest
from unittest.mock import patch

from webindex.core.domain_checker import DomainChecker
from tests.conftest import make_chunk


async def collect(stream):
    return [e.to_dict() async for e in stream]


@pytest.fixture
def indexed_store(document_store):
    document_store.upsert([
        make_chunk("docs.a.com_1_chunk_0", "https://docs.a.com/x", [1.0, 0.0, 0.0, 0.0], index=0, total=2),
        make_chunk("docs.a.com_1_chunk_1", "https://docs.a.com/y", [0.0, 1.0, 0.0, 0.0], index=1, total=2),
    ], "alice@example.com")
    return document_store


@pytest.mark.asyncio
async def test_domain_not_indexed(document_store):
    events = await collect(DomainChecker(document_store).run(domain="unknown.com", user_email="alice@example.com"))

    assert [e["type"] for e in events] == ["start", "checking_global", "complete"]
    complete = events[-1]
    assert complete["isIndexed"] is False
    assert complete["userHasAccess"] is False
    assert complete["status"] == "Domain Not Indexed"
    assert complete["domain"] == "unknown.com"


@pytest.mark.asyncio
async def test_indexed_without_user(indexed_store):
    events = await collect(DomainChecker(indexed_store).run(url="https://docs.a.com/anything"))

    assert [e["type"] for e in events] == ["start", "checking_global", "domain_found", "complete"]
    assert events[-1]["isIndexed"] is True
    assert "userHasAccess" not in events[-1]


@pytest.mark.asyncio
async def test_user_already_has_access(indexed_store):
    events = await collect(DomainChecker(indexed_store).run(domain="docs.a.com", user_email="alice@example.com"))

    assert [e["type"] for e in events] == ["start", "checking_global", "domain_found", "checking_user_access", "complete"]
    assert events[-1]["userHasAccess"] is True
    assert events[-1]["totalUserDomains"] == 1


@pytest.mark.asyncio
async def test_user_is_granted_access(indexed_store):
    events = await collect(DomainChecker(indexed_store).run(domain="Docs.A.com", user_email="bob@example.com"))

    assert [e["type"] for e in events] == [
        "start", "checking_global", "domain_found", "checking_user_access", "adding_user", "user_added", "complete",
    ]
    assert events[-2]["vectorsUpdated"] == 2
    complete = events[-1]
    assert complete["status"] == "Domain Already Indexed - User Added"
    assert complete["userHasAccess"] is True
    assert complete["totalUserDomains"] == 1
    assert indexed_store.list_user_domains("bob@example.com") == {"docs.a.com"}


@pytest.mark.parametrize("raw_domain", ["docs.a.com/", "docs.a.com:443", " DOCS.A.COM "])
@pytest.mark.asyncio
async def test_domain_parameter_is_reduced_to_hostname(indexed_store, raw_domain):
    events = await collect(DomainChecker(indexed_store).run(domain=raw_domain, user_email="bob@example.com"))

    assert events[-1]["type"] == "complete"
    assert events[-1]["domain"] == "docs.a.com"
    assert events[-1]["status"] == "Domain Already Indexed - User Added"
    assert indexed_store.list_user_domains("bob@example.com") == {"docs.a.com"}


@pytest.mark.asyncio
async def test_unparseable_domain(document_store):
    events = await collect(DomainChecker(document_store).run(domain="/", user_email="bob@example.com"))

    assert [e["type"] for e in events] == ["error"]
    assert events[0]["message"] == "Invalid URL format"


@pytest.mark.asyncio
async def test_invalid_url(document_store):
    events = await collect(DomainChecker(document_store).run(url="not a url"))

    assert [e["type"] for e in events] == ["error"]
    assert events[0]["message"] == "Invalid URL format"


@pytest.mark.asyncio
async def test_store_failure_ends_with_error(indexed_store):
    with patch.object(indexed_store, "list_user_domains", side_effect=RuntimeError("store offline")):
        events = await collect(DomainChecker(indexed_store).run(domain="docs.a.com", user_email="bob@example.com"))

    assert events[-1]["type"] == "error"
    assert events[-1]["error"] == "store offline"
