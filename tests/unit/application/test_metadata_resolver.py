"""Unit tests for the metadata resolver."""

import pytest

from auditmarket.application.services.metadata_resolver import (
    RESOLVE_STEP,
    MetadataResolver,
    detect_kind,
    parse_content_reference,
    summarize,
)
from auditmarket.domain.errors import ExternalServiceError, ValidationError
from auditmarket.infrastructure.stubs import InMemoryContentStore, compute_cid

CID_V0 = "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"
CID_V1 = compute_cid(b"{}")


@pytest.fixture
def resolver(content_store: InMemoryContentStore) -> MetadataResolver:
    return MetadataResolver(content_store)


class TestParseContentReference:
    """Tests for content reference parsing."""

    @pytest.mark.parametrize(
        ("reference", "expected"),
        [
            (CID_V0, CID_V0),
            (CID_V1, CID_V1),
            (f"ipfs://{CID_V0}", CID_V0),
            (f"ipfs://ipfs/{CID_V1}", CID_V1),
            (f"https://gateway.pinata.cloud/ipfs/{CID_V0}", CID_V0),
            (f"https://ipfs.io/ipfs/{CID_V1}/metadata.json?x=1", CID_V1),
            (f"  {CID_V0}  ", CID_V0),
        ],
    )
    def test_extracts_cid(self, reference: str, expected: str) -> None:
        """URIs, gateway URLs and bare CIDs resolve to the CID."""
        assert parse_content_reference(reference) == expected

    @pytest.mark.parametrize(
        "reference",
        ["", "not-a-cid", "ipfs://Qm123", "https://example.com/file.json", "Qm" + "0" * 44],
    )
    def test_rejects_malformed(self, reference: str) -> None:
        """Malformed identifiers are validation errors."""
        with pytest.raises(ValidationError) as exc_info:
            parse_content_reference(reference)
        assert exc_info.value.field == "cid"


class TestSummarize:
    """Tests for document normalization."""

    def test_defaults_for_missing_fields(self) -> None:
        """Missing request fields get display defaults."""
        summary = summarize({"audit_request": {}}, "request")
        assert summary["project_name"] == "Unknown"
        assert summary["complexity"] == "Medium"
        assert summary["reviewer_count"] == "1"
        assert summary["platform"] == "AuditMarket"

    def test_legacy_field_names(self) -> None:
        """Older documents name the source and submitter differently."""
        summary = summarize(
            {
                "audit_request": {
                    "github_url": "https://github.com/acme/old",
                    "auditor_count": 2,
                    "developer_wallet": "0xabc",
                }
            },
            "request",
        )
        assert summary["source_url"] == "https://github.com/acme/old"
        assert summary["reviewer_count"] == "2"
        assert summary["submitter_address"] == "0xabc"

    def test_result_fields(self) -> None:
        """Result summaries carry the request link and severity counts."""
        document = {
            "kind": "result",
            "original_audit_request": {"project_name": "Vault", "request_nft_id": "4"},
            "audit_result": {"audit_request_id": "r1", "reviewer_address": "0xdef"},
            "audit_results_summary": {"total_findings": 2},
        }
        summary = summarize(document, detect_kind(document))
        assert summary["project_name"] == "Vault"
        assert summary["request_nft_id"] == "4"
        assert summary["total_findings"] == 2
        assert summary["severity_breakdown"] == {"critical": 0, "high": 0, "medium": 0, "low": 0}
        assert summary["reviewer_name"] == "Anonymous Reviewer"


class TestDetectKind:
    """Tests for kind detection."""

    @pytest.mark.parametrize(
        ("document", "kind"),
        [
            ({"kind": "request"}, "request"),
            ({"audit_result": {}}, "result"),
            ({"audit_request": {}}, "request"),
            ({"profile": {}}, "profile"),
            ({"name": "something else"}, "unknown"),
        ],
    )
    def test_kinds(self, document: dict, kind: str) -> None:
        """Declared or structural kind, unknown otherwise."""
        assert detect_kind(document) == kind


class TestResolve:
    """Tests for MetadataResolver.resolve."""

    @pytest.mark.asyncio
    async def test_resolves_seeded_document(
        self, resolver: MetadataResolver, content_store: InMemoryContentStore
    ) -> None:
        """A stored document is fetched and summarized."""
        cid = content_store.seed({"kind": "request", "audit_request": {"project_name": "Vault"}})

        resolved = await resolver.resolve(f"ipfs://{cid}")

        assert resolved.cid == cid
        assert resolved.kind == "request"
        assert resolved.gateway_url == f"https://gateway.pinata.cloud/ipfs/{cid}"
        assert resolved.summary["project_name"] == "Vault"

    @pytest.mark.asyncio
    async def test_unknown_document_is_not_an_error(
        self, resolver: MetadataResolver, content_store: InMemoryContentStore
    ) -> None:
        """Documents that are not evidence resolve with kind unknown."""
        cid = content_store.seed({"hello": "world"})
        resolved = await resolver.resolve(cid)
        assert resolved.kind == "unknown"
        assert resolved.summary["name"] == "Untitled"

    @pytest.mark.asyncio
    async def test_missing_document_raises_resolve_step(
        self, resolver: MetadataResolver
    ) -> None:
        """A fetch failure is an external service error at resolve_metadata."""
        with pytest.raises(ExternalServiceError) as exc_info:
            await resolver.resolve(CID_V0)
        assert exc_info.value.step == RESOLVE_STEP

    @pytest.mark.asyncio
    async def test_malformed_reference(self, resolver: MetadataResolver) -> None:
        """Malformed references never reach the content store."""
        with pytest.raises(ValidationError):
            await resolver.resolve("nope")


class TestMalformedDocuments:
    """Public documents with unexpected JSON types resolve without raising."""

    @pytest.mark.parametrize(
        "document",
        [
            {"kind": ["nft"]},
            {"kind": {"type": "x"}},
            {"kind": 7, "name": ["not", "text"]},
        ],
    )
    def test_non_string_kind_is_unknown(self, document: dict) -> None:
        """A kind that is not a string falls back to structural detection."""
        assert detect_kind(document) == "unknown"

    def test_wrong_typed_request_fields_get_defaults(self) -> None:
        """Lists, dicts and numbers in text fields are coerced or defaulted."""
        summary = summarize(
            {
                "attributes": "none",
                "platform_info": ["x"],
                "audit_request": {
                    "project_name": {"en": "Vault"},
                    "tags": 5,
                    "proposed_price": 12000,
                    "reviewer_count": True,
                    "source_url": ["https://github.com/acme/vault"],
                },
            },
            "request",
        )
        assert summary["project_name"] == "Unknown"
        assert summary["tags"] == []
        assert summary["proposed_price"] == "12000"
        assert summary["reviewer_count"] == "1"
        assert summary["source_url"] == ""
        assert summary["attributes"] == []
        assert summary["platform"] == "AuditMarket"

    def test_mixed_tag_list_keeps_strings(self) -> None:
        """Only string tags survive normalization."""
        summary = summarize({"audit_request": {"tags": ["defi", 3, None, "bridge"]}}, "request")
        assert summary["tags"] == ["defi", "bridge"]

    def test_wrong_typed_result_counts(self) -> None:
        """Non-integer finding counts are zero."""
        summary = summarize(
            {
                "audit_result": {"reviewer_name": 0},
                "audit_results_summary": {
                    "total_findings": "2",
                    "severity_breakdown": {"high": 1, "low": "many"},
                },
            },
            "result",
        )
        assert summary["total_findings"] == 0
        assert summary["severity_breakdown"] == {"critical": 0, "high": 1, "medium": 0, "low": 0}
        assert summary["reviewer_name"] == "0"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("document", "kind"),
        [
            ({"kind": ["nft"]}, "unknown"),
            ({"kind": {"type": "x"}}, "unknown"),
            ({"audit_request": {"tags": 5}}, "request"),
            ({"audit_result": [], "audit_results_summary": {"severity_breakdown": [1]}}, "result"),
        ],
    )
    async def test_resolve_never_raises(
        self,
        resolver: MetadataResolver,
        content_store: InMemoryContentStore,
        document: dict,
        kind: str,
    ) -> None:
        """Resolving an arbitrary JSON object yields a defaulted summary."""
        cid = content_store.seed(document)

        resolved = await resolver.resolve(cid)

        assert resolved.kind == kind
        assert resolved.summary["name"] == "Untitled"
