"""Tests for the deposit workflow against mocked provider APIs."""

import json

import pytest
import responses
from requests.exceptions import ConnectionError

from zenarchive.api.provider_client import InvenioClient, ZenodoClient
from zenarchive.errors import (
    InvalidOrcidFormat,
    ProviderApiError,
    TransportError,
    ValidationError,
    WorkflowStateError,
)
from zenarchive.models import Creator, DepositState, ZenodoInfo
from zenarchive.workflow.deposit_workflow import (
    DepositWorkflow,
    compute_state,
    ensure_record_id,
    extract_doi,
    extract_info,
    is_published,
)


ZENODO_URL = "https://sandbox.zenodo.org/api"
DEPOSITIONS = f"{ZENODO_URL}/deposit/depositions"
BUCKET_URL = f"{ZENODO_URL}/files/bucket-5"
INVENIO_URL = "https://rdm.example.org/api"
ORCID = "0000-0002-1825-0097"

METADATA = {
    "title": "Discussion on open data",
    "description": "A thread about sharing research data openly.",
    "upload_type": "publication",
}

DRAFT_RESPONSE = {
    "id": 5,
    "state": "unsubmitted",
    "submitted": False,
    "doi": "",
    "links": {"bucket": BUCKET_URL},
    "metadata": {"prereserve_doi": {"doi": "10.5072/zenodo.5", "recid": 5}},
}

PUBLISHED_RESPONSE = {
    "id": 5,
    "state": "done",
    "submitted": True,
    "doi": "10.5072/zenodo.5",
    "doi_url": "https://doi.org/10.5072/zenodo.5",
    "links": {"edit": f"{DEPOSITIONS}/5/actions/edit"},
    "metadata": dict(METADATA),
}

INVENIO_DRAFT = {
    "id": "ab-12",
    "is_published": False,
    "status": "draft",
    "versions": {"index": 1, "is_latest": False, "is_latest_draft": True},
    "pids": {},
    "metadata": dict(METADATA),
}

INVENIO_PUBLISHED = {
    "id": "ab-12",
    "is_published": True,
    "status": "published",
    "versions": {"index": 1, "is_latest": True, "is_latest_draft": True},
    "pids": {"doi": {"identifier": "10.1234/rdm.ab-12"}},
    "metadata": dict(METADATA),
}


@pytest.fixture
def zenodo():
    """Create a Zenodo sandbox client."""
    return ZenodoClient("zenodo-token", ZENODO_URL)


@pytest.fixture
def creators():
    """Two thread participants, one with ORCID."""
    return [
        Creator(name="Doe, Jane", id=1, orcid=ORCID),
        Creator(name="Roe, Rick", id=2),
    ]


@pytest.fixture
def attachments(tmp_path):
    """A file on disk and an in-memory file."""
    path = tmp_path / "thread.pdf"
    path.write_bytes(b"%PDF-1.4")
    return [str(path), ("thread.json", b'{"posts": []}')]


def _urls(method):
    return [call.request.url for call in responses.calls if call.request.method == method]


class TestExtractDoi:
    """Test DOI extraction from raw responses."""

    def test_doi_url(self):
        """Test that doi_url is used as is."""
        assert extract_doi({"doi_url": "https://doi.org/10.5072/zenodo.5"}) == "https://doi.org/10.5072/zenodo.5"

    def test_invenio_pids(self):
        """Test the InvenioRDM pids shape."""
        assert extract_doi({"pids": {"doi": {"identifier": "10.1234/rdm.1"}}}) == "https://doi.org/10.1234/rdm.1"

    def test_prereserved(self):
        """Test the Zenodo reservation shape."""
        raw = {"metadata": {"prereserve_doi": {"doi": "10.5072/zenodo.5"}}}

        assert extract_doi(raw) == "https://doi.org/10.5072/zenodo.5"

    def test_no_doi(self):
        """Test that responses without DOI give None."""
        assert extract_doi({}) is None
        assert extract_doi(None) is None
        assert extract_doi({"pids": {}}) is None


class TestExtractInfo:
    """Test reconstruction of identifiers from stored responses."""

    def test_published_zenodo(self):
        """Test a stored published deposition."""
        info = extract_info({"id": 5, "doi": "10.5072/zenodo.5", "state": "done"})

        assert info == ZenodoInfo(doi="10.5072/zenodo.5", record_id="5", is_published=True)

    def test_record_id_from_doi(self):
        """Test that the record id is parsed from the DOI when no id is stored."""
        info = extract_info({"doi_url": "https://doi.org/10.5072/zenodo.9"})

        assert info.record_id == "9"
        assert info.is_published is True

    def test_unpublished(self):
        """Test that a draft without DOI is not published."""
        info = extract_info({"id": 3, "state": "unsubmitted"})

        assert info.record_id == "3"
        assert info.is_published is False

    def test_empty(self):
        """Test that empty input gives None."""
        assert extract_info({}) is None
        assert extract_info(None) is None


class TestState:
    """Test state derivation."""

    def test_is_published(self):
        """Test that a draft's empty DOI does not count."""
        assert is_published({"state": "done"}) is True
        assert is_published({"doi": "10.5072/zenodo.5"}) is True
        assert is_published({"doi": "", "state": "unsubmitted"}) is False

    def test_compute_state(self):
        """Test draft, published and superseded states."""
        assert compute_state(DRAFT_RESPONSE) == DepositState.DRAFT
        assert compute_state(PUBLISHED_RESPONSE) == DepositState.PUBLISHED
        assert compute_state({"is_published": True}) == DepositState.PUBLISHED
        assert compute_state({"state": "done", "versions": {"is_latest": False}}) == DepositState.SUPERSEDED

    def test_compute_state_invenio(self):
        """Test that a fresh InvenioRDM draft is not taken for an old version."""
        assert compute_state(INVENIO_DRAFT) == DepositState.DRAFT
        assert compute_state(INVENIO_PUBLISHED) == DepositState.PUBLISHED
        assert compute_state({
            **INVENIO_PUBLISHED,
            "versions": {"index": 1, "is_latest": False, "is_latest_draft": False},
        }) == DepositState.SUPERSEDED

    def test_ensure_record_id(self):
        """Test that a missing id is parsed from the DOI."""
        info = ensure_record_id(ZenodoInfo(doi="10.5072/zenodo.5", record_id=None, is_published=True))

        assert info.record_id == "5"

    def test_ensure_record_id_missing(self):
        """Test that unknown ids raise WorkflowStateError."""
        with pytest.raises(WorkflowStateError):
            ensure_record_id(None)
        with pytest.raises(WorkflowStateError):
            ensure_record_id(ZenodoInfo(doi="10.1234/other", record_id=None, is_published=True))


class TestPublishNew:
    """Test the create, upload and publish flow."""

    @responses.activate
    def test_publish_with_two_attachments(self, zenodo, creators, attachments):
        """Test the full flow ends with a DOI and a published deposit."""
        responses.add(responses.POST, DEPOSITIONS, json=DRAFT_RESPONSE, status=201)
        responses.add(responses.PUT, f"{BUCKET_URL}/thread.pdf", json={"key": "thread.pdf"}, status=201)
        responses.add(responses.PUT, f"{BUCKET_URL}/thread.json", json={"key": "thread.json"}, status=201)
        responses.add(responses.POST, f"{DEPOSITIONS}/5/actions/publish", json=PUBLISHED_RESPONSE, status=202)

        steps = []
        result = DepositWorkflow(zenodo, on_step=steps.append).publish_new(creators, METADATA, attachments)

        assert result.is_success
        assert result.published is True
        assert result.doi == "https://doi.org/10.5072/zenodo.5"
        assert result.deposit.state == DepositState.PUBLISHED
        assert result.deposit.record_id == "5"
        assert [f["key"] for f in result.files] == ["thread.pdf", "thread.json"]
        assert steps == ["validate", "create", "upload", "publish"]
        assert result.completed_steps == steps
        assert result.archival_record() == {"doi": result.doi, "raw": PUBLISHED_RESPONSE}

    @responses.activate
    def test_interleaved_flows_keep_own_steps(self, zenodo, creators):
        """Test that a flow started while another runs does not reset its steps."""
        responses.add(responses.POST, DEPOSITIONS, json=DRAFT_RESPONSE, status=201)
        responses.add(responses.POST, f"{DEPOSITIONS}/5/actions/publish", json=PUBLISHED_RESPONSE, status=202)
        inner_results = []
        started = []

        def start_second_flow(step):
            if step == "create" and not started:
                started.append(step)
                inner_results.append(workflow.publish_new(creators, METADATA, auto_publish=False))

        workflow = DepositWorkflow(zenodo, on_step=start_second_flow)
        result = workflow.publish_new(creators, METADATA)

        assert result.completed_steps == ["validate", "create", "upload", "publish"]
        assert inner_results[0].completed_steps == ["validate", "create", "upload"]

    @responses.activate
    def test_hidden_creators_not_sent(self, zenodo, creators):
        """Test that soft deleted creators stay out of the payload."""
        responses.add(responses.POST, DEPOSITIONS, json=DRAFT_RESPONSE, status=201)

        creators.append(Creator(name="Hidden", id=3, hidden=True))
        DepositWorkflow(zenodo).publish_new(creators, METADATA, auto_publish=False)

        body = json.loads(responses.calls[0].request.body)
        assert [c["name"] for c in body["metadata"]["creators"]] == ["Doe, Jane", "Roe, Rick"]

    @responses.activate
    def test_second_upload_fails(self, zenodo, creators, attachments):
        """Test that a network failure stops the flow and keeps the draft."""
        responses.add(responses.POST, DEPOSITIONS, json=DRAFT_RESPONSE, status=201)
        responses.add(responses.PUT, f"{BUCKET_URL}/thread.pdf", json={"key": "thread.pdf"}, status=201)
        responses.add(
            responses.PUT,
            f"{BUCKET_URL}/thread.json",
            body=ConnectionError("Network unreachable")
        )

        with pytest.raises(TransportError) as exc_info:
            DepositWorkflow(zenodo).publish_new(creators, METADATA, attachments)

        assert exc_info.value.step == "upload"
        assert exc_info.value.deposit.record_id == "5"
        assert exc_info.value.deposit.state == DepositState.DRAFT
        assert not any("actions/publish" in url for url in _urls("POST"))

    @responses.activate
    def test_invalid_metadata_sends_nothing(self, zenodo, creators):
        """Test that validation errors are raised before any request."""
        with pytest.raises(ValidationError) as exc_info:
            DepositWorkflow(zenodo).publish_new(creators, {"title": ""})

        assert exc_info.value.step == "validate"
        assert exc_info.value.deposit is None
        assert len(responses.calls) == 0

    @responses.activate
    def test_missing_attachment(self, zenodo, creators, tmp_path):
        """Test that a missing file is reported before the draft is created."""
        with pytest.raises(ValidationError) as exc_info:
            DepositWorkflow(zenodo).publish_new(creators, METADATA, [str(tmp_path / "missing.pdf")])

        assert "files" in exc_info.value.field_errors
        assert len(responses.calls) == 0

    @responses.activate
    def test_publish_failure_keeps_draft(self, zenodo, creators):
        """Test that a rejected publish is reported in the result instead of raised."""
        responses.add(responses.POST, DEPOSITIONS, json=DRAFT_RESPONSE, status=201)
        responses.add(
            responses.POST,
            f"{DEPOSITIONS}/5/actions/publish",
            json={"message": "Validation error", "errors": [{"field": "creators", "message": "Bad ORCID"}]},
            status=400
        )

        result = DepositWorkflow(zenodo).publish_new(creators, METADATA)

        assert result.published is False
        assert result.is_success is False
        assert result.doi is None
        assert isinstance(result.publish_error, ProviderApiError)
        assert result.publish_error.step == "publish"
        assert result.deposit.state == DepositState.DRAFT
        assert result.completed_steps == ["validate", "create", "upload"]

    @responses.activate
    def test_without_auto_publish(self, zenodo, creators):
        """Test that the draft is left unpublished when asked to."""
        responses.add(responses.POST, DEPOSITIONS, json=DRAFT_RESPONSE, status=201)

        result = DepositWorkflow(zenodo).publish_new(creators, METADATA, auto_publish=False)

        assert result.is_success
        assert result.published is False
        assert len(responses.calls) == 1

    @responses.activate
    def test_create_rejected(self, zenodo, creators):
        """Test that a rejected create is raised with the step and no deposit."""
        responses.add(responses.POST, DEPOSITIONS, json={"message": "Unauthorized"}, status=401)

        with pytest.raises(ProviderApiError) as exc_info:
            DepositWorkflow(zenodo).publish_new(creators, METADATA)

        assert exc_info.value.step == "create"
        assert exc_info.value.deposit is None


class TestEditMetadata:
    """Test metadata edits of existing deposits."""

    @responses.activate
    def test_zenodo_published_edit(self, zenodo, creators):
        """Test that a published deposition is unlocked, updated and republished."""
        edited = {**PUBLISHED_RESPONSE, "state": "inprogress", "metadata": {"title": "New title"}}
        responses.add(responses.GET, f"{DEPOSITIONS}/5", json=PUBLISHED_RESPONSE, status=200)
        responses.add(responses.POST, f"{DEPOSITIONS}/5/actions/edit", json=edited, status=201)
        responses.add(responses.PUT, f"{DEPOSITIONS}/5", json=edited, status=200)
        responses.add(responses.POST, f"{DEPOSITIONS}/5/actions/publish", json=PUBLISHED_RESPONSE, status=202)

        metadata = {**METADATA, "title": "New title", "doi": "10.5072/zenodo.5"}
        result = DepositWorkflow(zenodo).edit_metadata(PUBLISHED_RESPONSE, creators, metadata)

        assert result.published is True
        assert result.doi == "https://doi.org/10.5072/zenodo.5"
        assert result.completed_steps == ["resolve", "validate", "fetch", "edit", "update", "publish"]

        body = json.loads(responses.calls[2].request.body)
        assert body["metadata"]["title"] == "New title"
        assert "doi" not in body["metadata"]

    @responses.activate
    def test_missing_edit_link(self, zenodo, creators):
        """Test that a published deposition without edit link is never updated."""
        fetched = {key: value for key, value in PUBLISHED_RESPONSE.items() if key != "links"}
        responses.add(responses.GET, f"{DEPOSITIONS}/5", json=fetched, status=200)

        with pytest.raises(WorkflowStateError) as exc_info:
            DepositWorkflow(zenodo).edit_metadata(PUBLISHED_RESPONSE, creators, METADATA)

        assert exc_info.value.step == "edit"
        assert "Edit URL not found" in str(exc_info.value)
        assert _urls("PUT") == []

    @responses.activate
    def test_zenodo_draft_updated_directly(self, zenodo, creators):
        """Test that drafts skip the unlock."""
        responses.add(responses.GET, f"{DEPOSITIONS}/5", json=DRAFT_RESPONSE, status=200)
        responses.add(responses.PUT, f"{DEPOSITIONS}/5", json=DRAFT_RESPONSE, status=200)

        result = DepositWorkflow(zenodo).edit_metadata({"id": 5}, creators, METADATA)

        assert result.published is False
        assert result.completed_steps == ["resolve", "validate", "fetch", "update"]

    @responses.activate
    def test_invenio_direct_update(self, creators):
        """Test that InvenioRDM records are updated through their draft."""
        record = {
            "id": "ab-12",
            "is_published": True,
            "pids": {"doi": {"identifier": "10.1234/rdm.ab-12"}},
            "metadata": dict(METADATA),
        }
        responses.add(responses.GET, f"{INVENIO_URL}/records/ab-12", json=record, status=200)
        responses.add(responses.PUT, f"{INVENIO_URL}/records/ab-12/draft", json=record, status=200)

        client = InvenioClient("rdm-token", INVENIO_URL)
        result = DepositWorkflow(client).edit_metadata(record, creators, METADATA)

        assert result.published is True
        assert result.doi == "https://doi.org/10.1234/rdm.ab-12"
        assert result.completed_steps == ["resolve", "validate", "fetch", "update"]
        assert not any("actions" in url for url in _urls("POST"))

    def test_unknown_record(self, zenodo, creators):
        """Test that a record without id or Zenodo DOI cannot be edited."""
        with pytest.raises(WorkflowStateError) as exc_info:
            DepositWorkflow(zenodo).edit_metadata({"metadata": {}}, creators, METADATA)

        assert exc_info.value.step == "resolve"


class TestNewVersion:
    """Test publishing new versions."""

    @responses.activate
    def test_new_version(self, zenodo, creators, attachments):
        """Test that the new version gets its own DOI and the old one is superseded."""
        bucket_6 = f"{ZENODO_URL}/files/bucket-6"
        new_draft = {
            "id": 6,
            "state": "unsubmitted",
            "doi": "",
            "links": {"bucket": bucket_6},
            "metadata": dict(METADATA),
        }
        responses.add(
            responses.POST,
            f"{DEPOSITIONS}/5/actions/newversion",
            json={**PUBLISHED_RESPONSE, "links": {"latest_draft": f"{DEPOSITIONS}/6"}},
            status=201
        )
        responses.add(responses.PUT, f"{DEPOSITIONS}/6", json=new_draft, status=200)
        responses.add(responses.PUT, f"{bucket_6}/thread.pdf", json={"key": "thread.pdf"}, status=201)
        responses.add(responses.PUT, f"{bucket_6}/thread.json", json={"key": "thread.json"}, status=201)
        responses.add(
            responses.POST,
            f"{DEPOSITIONS}/6/actions/publish",
            json={"id": 6, "state": "done", "doi": "10.5072/zenodo.6", "doi_url": "https://doi.org/10.5072/zenodo.6"},
            status=202
        )

        result = DepositWorkflow(zenodo).new_version(PUBLISHED_RESPONSE, creators, METADATA, attachments)

        assert result.doi == "https://doi.org/10.5072/zenodo.6"
        assert result.deposit.record_id == "6"
        assert result.deposit.state == DepositState.PUBLISHED
        assert result.superseded.state == DepositState.SUPERSEDED
        assert result.superseded.doi == "https://doi.org/10.5072/zenodo.5"
        assert result.completed_steps == ["resolve", "validate", "new_version", "update", "upload", "publish"]

    @responses.activate
    def test_new_version_rejected(self, zenodo, creators):
        """Test that a failed new-version call carries the previous deposit."""
        responses.add(responses.POST, f"{DEPOSITIONS}/5/actions/newversion", json={}, status=403)

        with pytest.raises(ProviderApiError) as exc_info:
            DepositWorkflow(zenodo).new_version(PUBLISHED_RESPONSE, creators, METADATA)

        assert exc_info.value.step == "new_version"
        assert exc_info.value.deposit.record_id == "5"


class TestInvenioFlows:
    """Test the InvenioRDM records API flows."""

    @pytest.fixture
    def invenio(self):
        """Create an InvenioRDM client."""
        return InvenioClient("rdm-token", INVENIO_URL)

    def _add_upload(self, record_id, filename, commit_status=200):
        files_url = f"{INVENIO_URL}/records/{record_id}/draft/files"
        responses.add(responses.POST, files_url, json={"entries": [{"key": filename}]}, status=201)
        responses.add(responses.PUT, f"{files_url}/{filename}/content", json={"key": filename}, status=200)
        responses.add(
            responses.POST,
            f"{files_url}/{filename}/commit",
            json={"key": filename, "status": "completed"},
            status=commit_status
        )

    @responses.activate
    def test_publish_new(self, invenio, creators):
        """Test create, three-step upload and publish with the DOI from pids."""
        responses.add(responses.POST, f"{INVENIO_URL}/records", json=INVENIO_DRAFT, status=201)
        self._add_upload("ab-12", "thread.json")
        responses.add(
            responses.POST,
            f"{INVENIO_URL}/records/ab-12/draft/actions/publish",
            json=INVENIO_PUBLISHED,
            status=202
        )

        result = DepositWorkflow(invenio).publish_new(creators, METADATA, [("thread.json", b"{}")])

        assert result.published is True
        assert result.doi == "https://doi.org/10.1234/rdm.ab-12"
        assert result.deposit.record_id == "ab-12"
        assert result.deposit.state == DepositState.PUBLISHED
        assert result.files == [{"key": "thread.json", "status": "completed"}]
        assert result.completed_steps == ["validate", "create", "upload", "publish"]
        assert _urls("POST")[-1].endswith("/records/ab-12/draft/actions/publish")

    @responses.activate
    def test_publish_failure_leaves_draft_state(self, invenio, creators):
        """Test that a fresh draft stays a draft when publishing fails."""
        responses.add(responses.POST, f"{INVENIO_URL}/records", json=INVENIO_DRAFT, status=201)
        responses.add(
            responses.POST,
            f"{INVENIO_URL}/records/ab-12/draft/actions/publish",
            json={"message": "Internal server error"},
            status=500
        )

        result = DepositWorkflow(invenio).publish_new(creators, METADATA)

        assert result.published is False
        assert result.publish_error.step == "publish"
        assert result.deposit.state == DepositState.DRAFT
        assert result.deposit.doi is None

    @responses.activate
    def test_commit_failure(self, invenio, creators):
        """Test that a failed commit is tagged as upload and keeps the draft."""
        responses.add(responses.POST, f"{INVENIO_URL}/records", json=INVENIO_DRAFT, status=201)
        self._add_upload("ab-12", "thread.json", commit_status=500)

        with pytest.raises(ProviderApiError) as exc_info:
            DepositWorkflow(invenio).publish_new(creators, METADATA, [("thread.json", b"{}")])

        assert exc_info.value.step == "upload"
        assert exc_info.value.operation == "upload_commit"
        assert exc_info.value.deposit.record_id == "ab-12"
        assert exc_info.value.deposit.state == DepositState.DRAFT
        assert not any("actions/publish" in url for url in _urls("POST"))

    @responses.activate
    def test_new_version(self, invenio, creators):
        """Test that a new version draft is created through /versions and published."""
        new_draft = {
            **INVENIO_DRAFT,
            "id": "cd-34",
            "versions": {"index": 2, "is_latest": False, "is_latest_draft": True},
        }
        responses.add(responses.POST, f"{INVENIO_URL}/records/ab-12/versions", json=new_draft, status=201)
        responses.add(responses.PUT, f"{INVENIO_URL}/records/cd-34/draft", json=new_draft, status=200)
        self._add_upload("cd-34", "thread.json")
        responses.add(
            responses.POST,
            f"{INVENIO_URL}/records/cd-34/draft/actions/publish",
            json={
                **INVENIO_PUBLISHED,
                "id": "cd-34",
                "pids": {"doi": {"identifier": "10.1234/rdm.cd-34"}},
            },
            status=202
        )

        result = DepositWorkflow(invenio).new_version(
            INVENIO_PUBLISHED, creators, METADATA, [("thread.json", b"{}")]
        )

        assert result.deposit.record_id == "cd-34"
        assert result.doi == "https://doi.org/10.1234/rdm.cd-34"
        assert result.superseded.record_id == "ab-12"
        assert result.superseded.state == DepositState.SUPERSEDED
        assert result.superseded.doi == "https://doi.org/10.1234/rdm.ab-12"
        assert result.completed_steps == ["resolve", "validate", "new_version", "update", "upload", "publish"]


class TestLinkOrcid:
    """Test adding a co-author's ORCID after publication."""

    @responses.activate
    def test_link_orcid(self, zenodo):
        """Test that the matching creator gets the ORCID and the record is republished."""
        responses.add(responses.GET, f"{DEPOSITIONS}/5", json=PUBLISHED_RESPONSE, status=200)
        responses.add(responses.POST, f"{DEPOSITIONS}/5/actions/edit", json=PUBLISHED_RESPONSE, status=201)
        responses.add(responses.PUT, f"{DEPOSITIONS}/5", json=PUBLISHED_RESPONSE, status=200)
        responses.add(responses.POST, f"{DEPOSITIONS}/5/actions/publish", json=PUBLISHED_RESPONSE, status=202)

        creators = [Creator(name="Doe, Jane", id=1), Creator(name="Roe, Rick", id=2)]
        result = DepositWorkflow(zenodo).link_orcid(PUBLISHED_RESPONSE, creators, 2, "Roe, Rick", ORCID)

        assert result.published is True
        body = json.loads(responses.calls[2].request.body)
        assert body["metadata"]["creators"] == [
            {"name": "Doe, Jane"},
            {"name": "Roe, Rick", "orcid": ORCID},
        ]
        assert body["metadata"]["title"] == METADATA["title"]

    def test_invalid_orcid(self, zenodo, creators):
        """Test that malformed ORCIDs are rejected before any request."""
        with pytest.raises(InvalidOrcidFormat):
            DepositWorkflow(zenodo).link_orcid(PUBLISHED_RESPONSE, creators, 2, "Roe, Rick", "1234")

    def test_no_matching_creator(self, zenodo, creators):
        """Test that an unknown co-author is a validation error."""
        with pytest.raises(ValidationError) as exc_info:
            DepositWorkflow(zenodo).link_orcid(PUBLISHED_RESPONSE, creators, 9, "Nobody", ORCID)

        assert "creators" in exc_info.value.field_errors
