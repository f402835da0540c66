import time

import pytest
import requests
from pyairtable import Table
from pyairtable.formulas import field_name, quoted

from portal.domain.errors import UpstreamFailure
from portal.infra.records import AirtableRecordStore, AllOf, FieldEquals, InMemoryRecordStore


def test_case_insensitive_filter_formula_normalises_value():
	flt = FieldEquals("Student's Email", " Jane@Example.COM ", case_insensitive=True)

	ref = field_name("Student's Email")
	assert flt.to_formula() == f"LOWER(TRIM({ref})) = {quoted('jane@example.com')}"


def test_user_input_goes_through_quoting():
	hostile = "x' OR TRUE() OR '"
	flt = FieldEquals("Mentor Active Status", hostile)

	assert flt.to_formula() == f"{field_name('Mentor Active Status')} = {quoted(hostile)}"


def test_matches_ignores_case_and_padding():
	flt = FieldEquals("Student's Email", "jane@example.com", case_insensitive=True)

	assert flt.matches({"Student's Email": "  JANE@example.com"})
	assert not flt.matches({"Student's Email": "john@example.com"})
	assert not flt.matches({})


def test_all_of_combines_filters():
	flt = AllOf([FieldEquals("A", "1"), FieldEquals("B", "2")])

	assert flt.to_formula().startswith("AND(")
	assert flt.matches({"A": "1", "B": "2"})
	assert not flt.matches({"A": "1", "B": "3"})


@pytest.mark.asyncio
async def test_in_memory_find_sorts_and_limits():
	store = InMemoryRecordStore()
	store.add("Mentors", {"Name": "Zed"})
	store.add("Mentors", {"Name": "Amy"})
	store.add("Mentors", {"Name": "Lou"})

	rows = await store.find("Mentors", sort=["Name"], limit=2)

	assert [r["fields"]["Name"] for r in rows] == ["Amy", "Lou"]


@pytest.mark.asyncio
async def test_in_memory_update_merges_fields():
	store = InMemoryRecordStore()
	rec = store.add("Students", {"Name": "Jane", "GPA": 3.1})

	updated = await store.update("Students", rec["id"], {"GPA": 3.8})

	assert updated["fields"] == {"Name": "Jane", "GPA": 3.8}
	assert await store.find_by_id("Students", "recMissing") is None


def _http_error(status: int) -> requests.HTTPError:
	response = requests.Response()
	response.status_code = status
	return requests.HTTPError(f"{status} error", response=response)


@pytest.mark.asyncio
async def test_airtable_find_passes_formula_sort_and_limit(monkeypatch):
	seen = {}

	def fake_all(self, **kwargs):
		seen.update(kwargs)
		return [{"id": "recJane", "fields": {"Name": "Jane"}}]

	monkeypatch.setattr(Table, "all", fake_all)
	store = AirtableRecordStore("patTest", "appTest", timeout_seconds=1)

	rows = await store.find("Students", FieldEquals("Name", "Jane"), limit=1, sort=["Name"])

	assert rows == [{"id": "recJane", "fields": {"Name": "Jane"}}]
	assert seen["formula"] == FieldEquals("Name", "Jane").to_formula()
	assert seen["max_records"] == 1
	assert seen["sort"] == ["Name"]


@pytest.mark.asyncio
async def test_airtable_missing_record_is_none(monkeypatch):
	def fake_get(self, record_id, **kwargs):
		raise _http_error(404)

	monkeypatch.setattr(Table, "get", fake_get)
	store = AirtableRecordStore("patTest", "appTest", timeout_seconds=1)

	assert await store.find_by_id("Mentors", "recGone") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [_http_error(503), requests.ConnectionError("connection reset")])
async def test_airtable_errors_become_upstream_failure(monkeypatch, error):
	def fake_get(self, record_id, **kwargs):
		raise error

	monkeypatch.setattr(Table, "get", fake_get)
	store = AirtableRecordStore("patTest", "appTest", timeout_seconds=1)

	with pytest.raises(UpstreamFailure) as excinfo:
		await store.find_by_id("Mentors", "recX")
	assert excinfo.value.reason == "record_store_error"
	assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_airtable_slow_call_times_out(monkeypatch):
	def slow_all(self, **kwargs):
		time.sleep(0.5)
		return []

	monkeypatch.setattr(Table, "all", slow_all)
	store = AirtableRecordStore("patTest", "appTest", timeout_seconds=0.05)

	with pytest.raises(UpstreamFailure) as excinfo:
		await store.find("Mentors")
	assert excinfo.value.reason == "record_store_timeout"
